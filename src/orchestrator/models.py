"""
src/orchestrator/models.py

Pydantic models for conversation turns, tool-calling I/O and orchestration results.
"""


import json
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


# -------- Turns ----------------------------------------------------------------


class ToolCallRequest(BaseModel):
    """One tool invocation requested by the model; `id` correlates the ToolResult turn."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    raw_arguments: str = "{}"


class SystemTurn(BaseModel):

    model_config = ConfigDict(frozen=True)

    role: Literal["system"] = "system"
    text: str


class UserTurn(BaseModel):

    model_config = ConfigDict(frozen=True)

    role: Literal["user"] = "user"
    text: str


class AssistantTurn(BaseModel):

    model_config = ConfigDict(frozen=True)

    role: Literal["assistant"] = "assistant"
    text: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)


class ToolResultTurn(BaseModel):

    model_config = ConfigDict(frozen=True)

    role: Literal["tool"] = "tool"
    call_id: str
    text: str


Turn = Union[SystemTurn, UserTurn, AssistantTurn, ToolResultTurn]


class ChatMessage(BaseModel):
    """A prior turn as supplied by the caller (role + plain content)."""

    role: str
    content: Optional[str] = ""


# -------- Tools ----------------------------------------------------------------


class ToolDefinition(BaseModel):

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Dict[str, Any]


class ToolOutcome(BaseModel):
    """
    Result of executing one tool call. Success and failure both travel back to the
    model as ordinary turn content; `ok` only records which one it was.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    payload: str

    @classmethod
    def succeeded(cls, data: Any) -> "ToolOutcome":

        return cls(ok=True, payload=json.dumps(data, ensure_ascii=False, default=str))

    @classmethod
    def failed(cls, error: str, **extra: Any) -> "ToolOutcome":

        body = {"success": False, "error": error, **extra}

        return cls(ok=False, payload=json.dumps(body, ensure_ascii=False, default=str))


# -------- Completions ----------------------------------------------------------


class FinalAnswer(BaseModel):

    kind: Literal["final_answer"] = "final_answer"
    text: str


class ToolCallsRequested(BaseModel):

    kind: Literal["tool_calls"] = "tool_calls"
    calls: List[ToolCallRequest]
    assistant_turn: AssistantTurn


Completion = Union[FinalAnswer, ToolCallsRequested]


# -------- Results & errors -----------------------------------------------------


class OrchestrationResult(BaseModel):

    text: str
    success: bool
    error: Optional[str] = None


class OrchestrationError(Exception):
    """Base class for faults that abort an orchestration run."""


class InferenceError(OrchestrationError):
    """The inference endpoint could not be reached or refused the request."""


class ToolRoundLimitExceeded(OrchestrationError):

    def __init__(self, max_rounds: int):

        super().__init__(f"Exceeded the maximum of {max_rounds} tool-call rounds without a final answer.")
        self.max_rounds = max_rounds


class ConversationError(ValueError):
    """A turn was appended that would make the conversation invalid upstream."""
