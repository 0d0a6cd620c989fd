"""
src/orchestrator/conversation.py

Append-only conversation state for one orchestration run.
"""


from typing import Iterable, Iterator, List, Optional, Set

from orchestrator.models import (
    AssistantTurn,
    ChatMessage,
    ConversationError,
    SystemTurn,
    ToolResultTurn,
    Turn,
    UserTurn,
)


# Caller-supplied history may only contribute these roles
HISTORY_ROLES = ("user", "assistant")


class Conversation:
    """
    Ordered turns sent to the model. Turns are only ever appended.

    A ToolResultTurn is accepted only when its call id belongs to the most recent
    AssistantTurn and has not been answered yet.
    """

    def __init__(self, turns: Optional[Iterable[Turn]] = None):

        self._turns: List[Turn] = []
        self._pending: List[str] = []

        for turn in turns or ():
            self.append(turn)

    @classmethod
    def seed(cls, system_prompt: str, history: Iterable[ChatMessage], message: str) -> "Conversation":
        """System turn, prior user/assistant turns, then the new user message."""

        conv = cls([SystemTurn(text=system_prompt)])

        for msg in history:
            if msg.role == "user":
                conv.append(UserTurn(text=msg.content or ""))
            elif msg.role == "assistant":
                conv.append(AssistantTurn(text=msg.content or ""))

        conv.append(UserTurn(text=message))

        return conv

    def append(self, turn: Turn) -> None:

        if isinstance(turn, ToolResultTurn):
            if turn.call_id not in self._pending:
                raise ConversationError(f"No pending tool call with id '{turn.call_id}'.")
            self._pending.remove(turn.call_id)
        else:
            if self._pending:
                raise ConversationError(
                    f"Tool calls still awaiting results: {', '.join(self._pending)}."
                )
            if isinstance(turn, AssistantTurn):
                ids = [c.id for c in turn.tool_calls]
                if len(set(ids)) != len(ids):
                    raise ConversationError("Duplicate tool call ids in one assistant turn.")
                self._pending = ids

        self._turns.append(turn)

    @property
    def turns(self) -> List[Turn]:

        return list(self._turns)

    @property
    def pending_call_ids(self) -> Set[str]:

        return set(self._pending)

    @property
    def is_resolved(self) -> bool:

        return not self._pending

    def __len__(self) -> int:

        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:

        return iter(list(self._turns))
