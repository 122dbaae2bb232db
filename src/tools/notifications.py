"""
src/tools/notifications.py — publish-only notification channels

Tools and the orchestrator announce UI side effects ("refresh the file list",
"render this table") through a NotificationChannel. The channel is injected,
never global, so a test can hand in a RecordingChannel and assert on what was
emitted.

Provides:
- NotificationChannel: the protocol (broadcast(event, payload) -> None)
- RecordingChannel: keeps events in memory, optionally forwards to listeners
- LoggingChannel: writes every event to the log
- meta_action(...): helper building the standard {"action", "target", "data"} payload
"""


from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple


logger = logging.getLogger(__name__)

META_ACTION_EVENT = "metaAction"

Listener = Callable[[str, Dict[str, Any]], None]


class NotificationChannel(Protocol):

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        """Fire-and-forget: publish `payload` under `event` to any observers."""


def meta_action(action: str, target: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:

    return {"action": action, "target": target, "data": dict(data or {})}


class RecordingChannel:
    """
    In-memory channel. The studio UI drains it after each chat to show what
    the model triggered; tests read `events` directly.
    """

    def __init__(self, listeners: Optional[List[Listener]] = None):

        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self._listeners: List[Listener] = list(listeners or [])

    def subscribe(self, listener: Listener) -> None:

        self._listeners.append(listener)

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:

        self.events.append((event, payload))
        logger.debug("Broadcast %s: %s", event, payload)

        for listener in self._listeners:
            try:
                listener(event, payload)
            except Exception:
                # One broken observer must not stop delivery to the others
                logger.exception("Notification listener failed for event %s", event)

    def payloads(self, event: str = META_ACTION_EVENT) -> List[Dict[str, Any]]:

        return [payload for name, payload in self.events if name == event]

    def drain(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Return and forget everything recorded so far."""

        events, self.events = self.events, []

        return events


class LoggingChannel:

    def __init__(self, level: int = logging.INFO):

        self.level = level

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:

        logger.log(self.level, "Emitted %s: %s on %s", event, payload.get("action"), payload.get("target"))
