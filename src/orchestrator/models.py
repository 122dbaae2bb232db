"""
src/orchestrator/models.py

Pydantic models for the conversation, the model's structured replies,
function-call arguments, results and audit entries.
"""


from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -------- Conversation ---------------------------------------------------------
class Role(str, Enum):

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationMessage(BaseModel):

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: Role
    content: str

    def as_dict(self) -> Dict[str, str]:
        """Shape expected by chat-completion APIs."""

        return {"role": self.role, "content": self.content}


def user(content: str) -> ConversationMessage:
    return ConversationMessage(role=Role.USER, content=content)

def assistant(content: str) -> ConversationMessage:
    return ConversationMessage(role=Role.ASSISTANT, content=content)

def system(content: str) -> ConversationMessage:
    return ConversationMessage(role=Role.SYSTEM, content=content)


# -------- Model replies --------------------------------------------------------
class FunctionCall(BaseModel):

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    # Arguments decoded into the registered argument model; None for unknown names
    params: Optional[Any] = Field(default=None, exclude=True)

    @field_validator("arguments", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return {} if v is None else v


class MetaAction(BaseModel):

    action: str
    target: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return {} if v is None else v


class ModelResponse(BaseModel):

    explanation: str
    function_calls: List[FunctionCall] = Field(default_factory=list)
    meta_actions: List[MetaAction] = Field(default_factory=list)

    @field_validator("function_calls", "meta_actions", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return [] if v is None else v


# -------- Function arguments (one model per registered operation) --------------
class ToolArgs(BaseModel):
    """Base for argument records. Unknown keys are ignored, wrong types rejected."""

    model_config = ConfigDict(extra="ignore")


class NoArgs(ToolArgs):
    pass


class FilenameArgs(ToolArgs):

    filename: str


class FileContentArgs(ToolArgs):

    filename: str
    content: str


class SqlQueryArgs(ToolArgs):

    query: str


class ChartArgs(ToolArgs):

    config: Dict[str, Any] = Field(default_factory=dict)
    type: str = "line"


class TableArgs(ToolArgs):

    config: Dict[str, Any] = Field(default_factory=dict)


class LogsArgs(ToolArgs):

    logs: List[str] = Field(default_factory=list)


# -------- Results & audit ------------------------------------------------------
class OrchestratorError(Exception):
    """Base for failures raised by function handlers outside the file sandbox."""


class CallStatus(str, Enum):

    SUCCESS = "success"
    ERROR = "error"


class FunctionResult(BaseModel):

    model_config = ConfigDict(frozen=True)

    function_name: str
    status: CallStatus
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == CallStatus.SUCCESS


class StopReason(str, Enum):

    EMPTY_REPLY = "empty_reply"
    UNPARSABLE_REPLY = "unparsable_reply"
    NO_FUNCTION_CALLS = "no_function_calls"
    CONSECUTIVE_FAILURES = "consecutive_failures"
    MAX_ITERATIONS = "max_iterations"
    MODEL_ERROR = "model_error"


class AuditEntry(BaseModel):

    step: str
    ok: bool
    detail: str
    function_call: Optional[FunctionCall] = None
    function_result: Optional[FunctionResult] = None


class OrchestrationState(BaseModel):
    """Mutable per-run state. Owned by one TaskOrchestrator.run call."""

    messages: List[ConversationMessage]
    iteration: int = 0
    last_function_call_names: List[str] = Field(default_factory=list)
    consecutive_failures: int = 0
    stop_reason: Optional[StopReason] = None


class OrchestratorResult(BaseModel):

    messages: List[ConversationMessage] # Full transcript, seed included
    stop_reason: StopReason
    iterations: int
    function_results: List[FunctionResult] = Field(default_factory=list)
    audit: List[AuditEntry] = Field(default_factory=list)

    @property
    def reply(self) -> str:
        """Content of the most recent assistant message, or ''."""

        for msg in reversed(self.messages):
            if msg.role == Role.ASSISTANT:
                return msg.content

        return ""
