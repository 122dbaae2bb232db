"""
src/orchestrator/chat.py

Chat entry point for the studio: validates the request, assembles the seed
transcript, runs the orchestrator and records the exchange in history.

Seed order:
    base system prompt -> project structure -> history tail
    -> one directive per user message -> the user messages
"""


import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from config import HISTORY_TAIL
from context.loader import ConversationHistory
from context.selectors import last_assistant_message
from orchestrator import prompts
from orchestrator.models import ConversationMessage, OrchestratorResult, StopReason, user
from orchestrator.router import TaskOrchestrator
from tools.sandbox import FileSandbox


logger = logging.getLogger(__name__)


class ChatReply(BaseModel):

    reply: str
    stop_reason: StopReason
    iterations: int
    messages: List[ConversationMessage] = Field(default_factory=list) # Added to history this turn


class ChatService:

    def __init__(
            self,
            orchestrator: TaskOrchestrator,
            sandbox: FileSandbox,
            history: Optional[ConversationHistory] = None,
            *,
            history_tail: int = HISTORY_TAIL,
    ):

        self.orchestrator = orchestrator
        self.sandbox = sandbox
        self.history = history if history is not None else ConversationHistory()
        self.history_tail = history_tail

    def build_seed(self, user_messages: List[str], project_id: str) -> List[ConversationMessage]:

        return [
            prompts.base_system_message(self.orchestrator.registry.describe()),
            prompts.project_structure_message(self.sandbox.project_tree(project_id)),
            *self.history.tail(project_id, self.history_tail),
            *prompts.directive_messages(user_messages),
            *[user(m) for m in user_messages],
        ]

    def handle(self, user_messages: Any, project_id: Any) -> ChatReply:
        """
        Run one chat turn.

        Args:
            user_messages: List of user message strings.
            project_id: Target project.

        Returns:
            ChatReply with the last assistant message as `reply`.

        Raises:
            ValueError on malformed input.
        """

        if not isinstance(user_messages, list) or not all(isinstance(m, str) for m in user_messages):
            raise ValueError("userMessages must be an array of strings")
        if not user_messages:
            raise ValueError("userMessages must not be empty")
        if not project_id or not isinstance(project_id, str):
            raise ValueError("Missing or invalid projectId")

        seed = self.build_seed(user_messages, project_id)
        logger.info("Chat for %s: %d user message(s), %d seed message(s)", project_id, len(user_messages), len(seed))

        result: OrchestratorResult = self.orchestrator.run(seed, project_id)

        # Keep the user's words and everything the run produced; the prompt boilerplate is rebuilt each turn
        new_messages = [user(m) for m in user_messages] + result.messages[len(seed):]
        self.history.append(project_id, new_messages)

        last = last_assistant_message(new_messages)

        return ChatReply(
            reply=last.content if last else "",
            stop_reason=result.stop_reason,
            iterations=result.iterations,
            messages=new_messages,
        )
