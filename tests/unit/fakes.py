"""
tests/unit/fakes.py — Shared Test Doubles

A scripted chat session / LLM client pair and recording tool executors.
No network, no google-genai objects.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Optional

from lifeorch.agent.executor import ToolExecutors
from lifeorch.brain.llm_client import BaseChatSession, BaseLLMClient, ResponseStream
from lifeorch.brain.types import (
    FinishReason,
    LLMConfig,
    LLMResponse,
    MessagePart,
    ToolCall,
    ToolSchema,
)
from lifeorch.stores.types import (
    LifeInventory,
    OrchestrationProposal,
    Person,
    RelationshipLedger,
    Task,
    UpdateRelationshipArgs,
)

FIXED_NOW = datetime(2024, 3, 15, 9, 30)       # a Friday


def text_response(text: str = "Done.", thought: str = "") -> LLMResponse:
    return LLMResponse(text=text, thought=thought, finish_reason=FinishReason.STOP)


def tool_response(*calls: ToolCall, text: str = "") -> LLMResponse:
    return LLMResponse(text=text, tool_calls=list(calls), finish_reason=FinishReason.TOOL_CALLS)


def call(name: str, call_id: str = "", **arguments: Any) -> ToolCall:
    return ToolCall(id=call_id or f"call_{name}", name=name, arguments=arguments)


class FakeChatSession(BaseChatSession):
    """
    Replays a script. Each `send` consumes one item (an LLMResponse or an
    exception to raise). Each `send_stream` consumes one list of chunks; a
    chunk may be an exception (raised mid-stream) or an asyncio.Event the
    stream blocks on before continuing.
    """

    def __init__(self, script: Optional[list] = None, stream_script: Optional[list] = None):
        self.script = list(script or [])
        self.stream_script = list(stream_script or [])
        self.sent: list[list[MessagePart]] = []
        self.stream_sent: list[list[MessagePart]] = []

    async def send(self, parts: list[MessagePart]) -> LLMResponse:
        self.sent.append(parts)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def send_stream(self, parts: list[MessagePart]) -> ResponseStream:
        self.stream_sent.append(parts)
        chunks = self.stream_script.pop(0)
        if isinstance(chunks, BaseException):
            raise chunks

        async def _gen():
            for chunk in chunks:
                if isinstance(chunk, asyncio.Event):
                    await chunk.wait()
                    continue
                if isinstance(chunk, BaseException):
                    raise chunk
                yield chunk

        return ResponseStream(_gen())


class FakeLLMClient(BaseLLMClient):
    """Hands out FakeChatSessions in order and records every start_chat call."""

    def __init__(self, chats: Optional[list[FakeChatSession]] = None, token_count: int = 42):
        super().__init__(api_key="test-key")
        self.chats = list(chats or [])
        self.started: list[dict] = []
        self.token_count = token_count
        self.count_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None     # raised by the next start_chat only

    def start_chat(self, system_instruction: str, tools: list[ToolSchema], config: LLMConfig):
        if self.start_error is not None:
            error, self.start_error = self.start_error, None
            raise error
        self.started.append({
            "system_instruction": system_instruction,
            "tools": tools,
            "config": config,
        })
        return self.chats.pop(0) if self.chats else FakeChatSession()

    async def count_tokens(self, text: str, config: LLMConfig) -> int:
        if self.count_error is not None:
            raise self.count_error
        return self.token_count


class RecordingExecutors(ToolExecutors):
    """Records every call; tools named in `fail` raise RuntimeError."""

    def __init__(self, fail: tuple[str, ...] = ()):
        self.calls: list[tuple[str, tuple]] = []
        self.fail = set(fail)
        self.ledger: RelationshipLedger = {
            "mom": Person(name="Mom", relation="Mother", category="Family", priority=5),
        }

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise RuntimeError(f"{name} exploded")

    async def get_relationship_status(self) -> RelationshipLedger:
        self._record("get_relationship_status")
        return self.ledger

    async def get_life_context(self, date: Optional[str] = None) -> LifeInventory:
        self._record("get_life_context", date)
        return LifeInventory(fixed=[
            Task(id="t1", title="Standup", type="fixed", time="09:00",
                 date=date, duration="15m", priority="high", category="Career"),
        ])

    async def propose_orchestration(self, proposal: OrchestrationProposal) -> str:
        self._record("propose_orchestration", proposal)
        return "Proposal generated."

    async def update_relationship_status(self, args: UpdateRelationshipArgs) -> str:
        self._record("update_relationship_status", args)
        return f"Updated {args.person_name}'s ledger."

    async def add_task(self, task: Task) -> str:
        self._record("add_task", task)
        return f'Added "{task.title}".'

    async def delete_task(self, title: str) -> str:
        self._record("delete_task", title)
        return f'Removed task "{title}".'

    async def delete_relationship_status(self, name: str) -> str:
        self._record("delete_relationship_status", name)
        return f"Removed {name}."

    async def save_memory(self, content: str, kind: str) -> str:
        self._record("save_memory", content, kind)
        return f'Saved to memory: "{content}"'

    async def move_tasks(self, task_identifiers: list[str], target_date: str) -> str:
        self._record("move_tasks", task_identifiers, target_date)
        return f"Moved {len(task_identifiers)} tasks to {target_date}."

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


async def no_sleep(delay: float) -> None:
    return None
