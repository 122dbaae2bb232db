"""
src/orchestrator/llm_openai.py

OpenAI client wrapper for JSON-mode chat completions.
- ChatModel: what the orchestrator needs (complete(messages) -> text)
- OpenAIChatClient: Chat Completions with response_format=json_object
"""


import logging
import os
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from openai import OpenAI

from config import DEFAULT_MODEL, DEFAULT_TEMPERATURE
from orchestrator.models import ConversationMessage


logger = logging.getLogger(__name__)

MessageLike = Union[ConversationMessage, Dict[str, Any]]


class ChatModel(Protocol):

    def complete(self, messages: Sequence[ConversationMessage]) -> str:
        """Return the text of one reply to `messages`. May raise on transport errors."""


def to_openai_messages(messages: Sequence[MessageLike]) -> List[Dict[str, Any]]:
    """Normalise our messages (or plain dicts) to the Chat Completions shape."""

    out = []
    for m in messages:
        if isinstance(m, ConversationMessage):
            out.append(m.as_dict())
        else:
            out.append({"role": m["role"], "content": m["content"]})

    return out


class OpenAIChatClient:

    def __init__(
            self,
            *,
            model: str = DEFAULT_MODEL,
            temperature: float = DEFAULT_TEMPERATURE,
            api_key: Optional[str] = None,
            client: Optional[OpenAI] = None,
    ):

        self.model = model
        self.temperature = temperature
        self._client = client or OpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"))

    def call_model(self, messages: Sequence[MessageLike]):
        """
        Low-level call to OpenAI Chat Completions in JSON mode.
        Returns the raw response object.
        """

        resp = self._client.chat.completions.create(
            model=self.model,
            messages=to_openai_messages(messages),
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )

        return resp

    def complete(self, messages: Sequence[MessageLike]) -> str:
        """Text of the first choice, trimmed; '' when the model sent nothing."""

        resp = self.call_model(messages)

        if not resp.choices:
            return ""

        content = resp.choices[0].message.content or ""
        logger.debug("Model reply (%d chars)", len(content))

        return content.strip()
