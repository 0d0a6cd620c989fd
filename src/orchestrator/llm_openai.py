"""
src/orchestrator/llm_openai.py

OpenAI client wrapper for function calling.
- InferenceClient: the narrow contract the orchestrator relies on
- OpenAIChatClient: one chat-completions call per complete(); works with OpenAI or Azure OpenAI
- DisabledClient: stands in when no endpoint is configured (complete() is never meant to run)
- connect(): pick one of the above from Settings, once, at start-up
"""


import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from config import Settings
from orchestrator.conversation import Conversation
from orchestrator.models import (
    AssistantTurn,
    Completion,
    ConversationError,
    FinalAnswer,
    InferenceError,
    SystemTurn,
    ToolCallRequest,
    ToolCallsRequested,
    ToolDefinition,
    ToolResultTurn,
    Turn,
    UserTurn,
)
from orchestrator.prompts import NO_RESPONSE_TEXT


logger = logging.getLogger(__name__)


class InferenceClient(ABC):
    """Sends a whole conversation plus the tool catalog; returns a final answer or tool calls."""

    @property
    @abstractmethod
    def configured(self) -> bool:
        ...

    @abstractmethod
    async def complete(self, conversation: Conversation, tools: Sequence[ToolDefinition]) -> Completion:
        ...


class DisabledClient(InferenceClient):

    def __init__(self, reason: str = "inference endpoint not configured"):

        self.reason = reason

    @property
    def configured(self) -> bool:

        return False

    async def complete(self, conversation: Conversation, tools: Sequence[ToolDefinition]) -> Completion:

        raise InferenceError(f"Inference client is disabled: {self.reason}")


# -------- Wire translation -----------------------------------------------------


def tool_specs(tools: Sequence[ToolDefinition]) -> List[Dict[str, Any]]:
    """Build OpenAI function specs."""

    return [
        {
            "type": "function",
            "function": {
                "name": t.name,
                "description": t.description,
                "parameters": t.parameters,
            },
        }
        for t in tools
    ]

def to_message(turn: Turn) -> Dict[str, Any]:

    if isinstance(turn, SystemTurn):
        return {"role": "system", "content": turn.text}
    if isinstance(turn, UserTurn):
        return {"role": "user", "content": turn.text}
    if isinstance(turn, ToolResultTurn):
        return {"role": "tool", "tool_call_id": turn.call_id, "content": turn.text}
    if isinstance(turn, AssistantTurn):
        msg: Dict[str, Any] = {"role": "assistant", "content": turn.text}
        if turn.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": c.id,
                    "type": "function",
                    "function": {"name": c.name, "arguments": c.raw_arguments},
                }
                for c in turn.tool_calls
            ]
        return msg

    raise TypeError(f"Unsupported turn type: {type(turn).__name__}")

def extract_tool_calls(message: Any) -> List[ToolCallRequest]:
    """
    Normalize tool calls from an OpenAI response message.
    Arguments stay as the raw JSON string; decoding is the dispatcher's job.
    """

    out = []
    tcs = getattr(message, "tool_calls", None)

    if not tcs:
        return out

    for tc in tcs:
        fn = getattr(tc, "function", None)
        if getattr(tc, "type", "function") == "function" and fn is not None:
            out.append(ToolCallRequest(id=tc.id, name=fn.name, raw_arguments=fn.arguments or "{}"))

    return out


# -------- Client ---------------------------------------------------------------


class OpenAIChatClient(InferenceClient):

    def __init__(self, client: AsyncOpenAI, model: str, *, temperature: Optional[float] = 0.2):

        self._client = client
        self.model = model
        self.temperature = temperature

    @property
    def configured(self) -> bool:

        return True

    async def complete(self, conversation: Conversation, tools: Sequence[ToolDefinition]) -> Completion:

        if not conversation.is_resolved:
            raise ConversationError("Conversation has tool calls without results.")

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [to_message(t) for t in conversation],
        }
        if tools:
            request["tools"] = tool_specs(tools)
            request["tool_choice"] = "auto"
        if self.temperature is not None:
            request["temperature"] = self.temperature

        try:
            resp = await self._client.chat.completions.create(**request)
        except openai.APIError as e:
            raise InferenceError(f"Chat completion failed: {e}") from e

        if not resp.choices:
            raise InferenceError("Chat completion returned no choices.")

        message = resp.choices[0].message
        calls = extract_tool_calls(message)

        if calls:
            return ToolCallsRequested(
                calls=calls,
                assistant_turn=AssistantTurn(text=message.content, tool_calls=calls),
            )

        return FinalAnswer(text=message.content or NO_RESPONSE_TEXT)


def connect(settings: Settings) -> InferenceClient:
    """Build the inference client for this process; disabled when nothing usable is configured."""

    if not settings.ai_enabled:
        logger.warning("OpenAI endpoint not configured. Chat will return the service-unavailable notice.")
        return DisabledClient()

    problems = settings.validate()

    if problems:
        logger.error("OpenAI configuration invalid: %s", "; ".join(problems))
        return DisabledClient("; ".join(problems))

    try:
        if settings.use_azure:
            client = AsyncAzureOpenAI(
                azure_endpoint=settings.azure_endpoint,
                api_key=settings.azure_api_key or settings.openai_api_key,
                api_version=settings.azure_api_version,
            )
            logger.info("Using Azure OpenAI deployment %s at %s", settings.model, settings.azure_endpoint)
        else:
            client = AsyncOpenAI(api_key=settings.openai_api_key)
            logger.info("Using OpenAI model %s", settings.model)
    except openai.OpenAIError as e:
        logger.exception("Failed to initialize OpenAI client")
        return DisabledClient(str(e))

    return OpenAIChatClient(client, settings.model, temperature=settings.temperature)
