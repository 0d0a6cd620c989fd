"""
src/orchestrator/router.py

Router: seeds the conversation, runs the function-calling loop, executes tools,
and returns a tidy result.
"""


import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from config import Settings
from orchestrator import prompts, registry
from orchestrator.conversation import HISTORY_ROLES, Conversation
from orchestrator.dispatch import ToolDispatcher
from orchestrator.llm_openai import InferenceClient, connect
from orchestrator.models import (
    AssistantTurn,
    ChatMessage,
    FinalAnswer,
    OrchestrationResult,
    SystemTurn,
    ToolDefinition,
    ToolResultTurn,
    ToolRoundLimitExceeded,
    Turn,
    UserTurn,
)
from tools.expenses import ExpenseRepository


logger = logging.getLogger(__name__)

HistoryItem = Union[Turn, ChatMessage, Dict[str, Any]]


def _coerce_history(history: Optional[Iterable[HistoryItem]]) -> List[ChatMessage]:
    """
    Normalise caller history to plain user/assistant messages.

    Accepts Turn objects, ChatMessage or role/content dicts (gradio "messages").
    System and tool turns are dropped, as are entries without text content
    (files, images and other multimodal chat items).
    """

    out = []

    for item in history or ():
        if isinstance(item, (UserTurn, AssistantTurn)):
            if not item.text:
                continue
            msg = ChatMessage(role=item.role, content=item.text)
        elif isinstance(item, (SystemTurn, ToolResultTurn)):
            continue
        elif isinstance(item, ChatMessage):
            msg = item
        else:
            content = item.get("content") if isinstance(item, dict) else None
            if not isinstance(content, str):
                logger.debug("Skipping non-text history entry")
                continue
            msg = ChatMessage.model_validate(item)

        if msg.role in HISTORY_ROLES:
            out.append(msg)

    return out


class ChatOrchestrator:
    """
    Drives one chat request to completion:

        seed -> complete() -> final answer
                           -> tool calls -> dispatch each, in order -> complete() -> ...

    At most `max_tool_rounds` rounds of tool calls are executed per request.
    """

    def __init__(
            self,
            client: InferenceClient,
            dispatcher: ToolDispatcher,
            *,
            catalog: Optional[Sequence[ToolDefinition]] = None,
            max_tool_rounds: int = 8,
            system_prompt: str = prompts.SYSTEM_PROMPT,
    ):

        if max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be at least 1")

        self.client = client
        self.dispatcher = dispatcher
        self.catalog = tuple(catalog if catalog is not None else registry.get_catalog())
        self.max_tool_rounds = max_tool_rounds
        self.system_prompt = system_prompt

    async def process_message(self, message: str, history: Optional[Iterable[HistoryItem]] = None) -> OrchestrationResult:
        """Entry point: one user message (plus prior turns) in, one result out."""

        if not self.client.configured:
            return OrchestrationResult(text=prompts.SERVICE_UNAVAILABLE_TEXT, success=True)

        if not message or not message.strip():
            return OrchestrationResult(text=prompts.EMPTY_MESSAGE_TEXT, success=False)

        try:
            conversation = Conversation.seed(self.system_prompt, _coerce_history(history), message.strip())
            text = await self._run(conversation)
        except ToolRoundLimitExceeded as e:
            logger.warning("Stopping chat: %s", e)
            return OrchestrationResult(text=prompts.ROUND_LIMIT_TEXT, success=False, error=str(e))
        except Exception as e:
            logger.exception("Error processing chat message")
            return OrchestrationResult(text=prompts.APOLOGY_TEXT, success=False, error=str(e) or e.__class__.__name__)

        return OrchestrationResult(text=text, success=True)

    async def _run(self, conversation: Conversation) -> str:

        rounds = 0

        while True:
            completion = await self.client.complete(conversation, self.catalog)

            if isinstance(completion, FinalAnswer):
                logger.debug("Final answer after %d tool round(s)", rounds)
                return completion.text

            if rounds >= self.max_tool_rounds:
                raise ToolRoundLimitExceeded(self.max_tool_rounds)
            rounds += 1

            # Record the pending calls, then answer each one in the order requested
            conversation.append(completion.assistant_turn)

            for call in completion.calls:
                outcome = await self.dispatcher.execute(call.name, call.raw_arguments)
                conversation.append(ToolResultTurn(call_id=call.id, text=outcome.payload))


def build_orchestrator(settings: Settings, repository: ExpenseRepository) -> ChatOrchestrator:
    """Wire settings, the expense repository and the inference client together."""

    dispatcher = ToolDispatcher(
        repository,
        user_id=settings.default_user_id,
        reviewer_id=settings.default_reviewer_id,
    )

    return ChatOrchestrator(connect(settings), dispatcher, max_tool_rounds=settings.max_tool_rounds)
