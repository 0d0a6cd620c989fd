"""Shared pytest fixtures: seeded workspace, repository and a scripted inference client."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence, Tuple

import pytest

from context.loader import Workspace, load_workspace
from orchestrator.conversation import Conversation
from orchestrator.llm_openai import InferenceClient
from orchestrator.models import (
    AssistantTurn,
    Completion,
    FinalAnswer,
    ToolCallRequest,
    ToolCallsRequested,
    ToolDefinition,
    ToolOutcome,
    Turn,
)
from tools.expenses import WorkspaceExpenseRepository


def final(text: str) -> FinalAnswer:
    return FinalAnswer(text=text)


def tool_round(*calls: Tuple[str, str, Dict[str, Any]]) -> ToolCallsRequested:
    requests = [ToolCallRequest(id=cid, name=name, raw_arguments=json.dumps(args)) for cid, name, args in calls]
    return ToolCallsRequested(calls=requests, assistant_turn=AssistantTurn(tool_calls=requests))


class ScriptedClient(InferenceClient):
    """Returns the scripted completions in order and snapshots every conversation it is sent."""

    def __init__(self, script: Sequence[Completion], *, repeat_last: bool = False):
        self._script = list(script)
        self._repeat_last = repeat_last
        self.seen: List[List[Turn]] = []
        self.tools_seen: List[List[ToolDefinition]] = []

    @property
    def configured(self) -> bool:
        return True

    @property
    def calls(self) -> int:
        return len(self.seen)

    async def complete(self, conversation: Conversation, tools: Sequence[ToolDefinition]) -> Completion:
        self.seen.append(conversation.turns)
        self.tools_seen.append(list(tools))
        if len(self._script) == 1 and self._repeat_last:
            return self._script[0]
        if not self._script:
            raise AssertionError("ScriptedClient ran out of completions")
        return self._script.pop(0)


class RecordingDispatcher:
    """Dispatcher stand-in that records calls and answers with a fixed payload."""

    def __init__(self, payload: Any = None):
        self.calls: List[Tuple[str, str]] = []
        self._payload = payload if payload is not None else {"success": True}

    async def execute(self, name: str, raw_arguments: str) -> ToolOutcome:
        self.calls.append((name, raw_arguments))
        return ToolOutcome.succeeded(self._payload)


@pytest.fixture
def workspace() -> Workspace:
    return load_workspace()


@pytest.fixture
def repository(workspace: Workspace) -> WorkspaceExpenseRepository:
    return WorkspaceExpenseRepository(workspace)
