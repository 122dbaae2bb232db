"""
src/context/loader.py

Per-project conversation history: append-only in memory, optionally saved to
and loaded from a JSON file ({"<project_id>": [{"role", "content"}, ...]}).
"""


import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from orchestrator.models import ConversationMessage


logger = logging.getLogger(__name__)


class ConversationHistory:

    def __init__(self, data: Dict[str, List[ConversationMessage]] = None):

        self._by_project: Dict[str, List[ConversationMessage]] = {
            pid: list(msgs) for pid, msgs in (data or {}).items()
        }

    def append(self, project_id: str, messages: Iterable[ConversationMessage]) -> None:

        self._by_project.setdefault(project_id, []).extend(messages)

    def get(self, project_id: str) -> List[ConversationMessage]:
        """Copy of the full history for a project (empty if unknown)."""

        return list(self._by_project.get(project_id, []))

    def tail(self, project_id: str, n: int) -> List[ConversationMessage]:

        if n <= 0:
            return []

        return self.get(project_id)[-n:]

    def projects(self) -> List[str]:

        return sorted(self._by_project)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:

        return {pid: [m.as_dict() for m in msgs] for pid, msgs in self._by_project.items()}


def load_history(path: Path) -> ConversationHistory:
    """Load a saved history; a missing file gives an empty one."""

    if not path.exists():
        logger.info("No history file at %s, starting empty", path)
        return ConversationHistory()

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    # Sanity checks
    if not isinstance(data, dict):
        raise ValueError(f"History file {path} must contain a JSON object keyed by project id")

    return ConversationHistory({
        pid: [ConversationMessage.model_validate(m) for m in msgs]
        for pid, msgs in data.items()
    })

def save_history(history: ConversationHistory, path: Path) -> Path:

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(history.to_dict(), f, indent=2, ensure_ascii=False)

    return path
