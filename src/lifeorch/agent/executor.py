"""
agent/executor.py — Executor Bridge

Resolves model-issued ToolCalls into ToolResults by routing each one to the
matching method of a host-supplied ToolExecutors object.

Result shape (always under the "result" key of ToolResult.response):
  - read tools (get_relationship_status, get_life_context) → the payload itself
  - mutating tools → {"status": <message returned by the executor>}
  - executor raised → {"error": "Failed to execute tool"}
  - unknown name → {"error": "Unknown tool: <name>"}

Usage:
    bridge = ExecutorBridge(LocalExecutors(state))
    results = await bridge.execute_batch(response.tool_calls)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from lifeorch.brain.types import ToolCall, ToolResult
from lifeorch.observability.logger import get_logger
from lifeorch.stores.types import (
    LifeInventory,
    OrchestrationProposal,
    RelationshipLedger,
    Task,
    UpdateRelationshipArgs,
)

log = get_logger(__name__)

TOOL_FAILED = "Failed to execute tool"


class ToolExecutors(ABC):
    """
    The host side of the nine tools. Mutating methods return a short
    human-readable status message; read methods return the data itself.
    """

    @abstractmethod
    async def get_relationship_status(self) -> RelationshipLedger:
        ...

    @abstractmethod
    async def get_life_context(self, date: Optional[str] = None) -> LifeInventory | list[Task]:
        ...

    @abstractmethod
    async def propose_orchestration(self, proposal: OrchestrationProposal) -> str:
        ...

    @abstractmethod
    async def update_relationship_status(self, args: UpdateRelationshipArgs) -> str:
        ...

    @abstractmethod
    async def add_task(self, task: Task) -> str:
        ...

    @abstractmethod
    async def delete_task(self, title: str) -> str:
        ...

    @abstractmethod
    async def delete_relationship_status(self, name: str) -> str:
        ...

    @abstractmethod
    async def save_memory(self, content: str, kind: str) -> str:
        ...

    @abstractmethod
    async def move_tasks(self, task_identifiers: list[str], target_date: str) -> str:
        ...


def to_jsonable(payload: Any) -> Any:
    """Dump pydantic models (also nested in dicts/lists) to JSON-mode data."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(payload, dict):
        return {k: to_jsonable(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [to_jsonable(v) for v in payload]
    return payload


class ExecutorBridge:
    """
    Stateless between calls. One executor failure never prevents the
    remaining calls of the same batch from running.
    """

    def __init__(self, executors: ToolExecutors, parallel: bool = False) -> None:
        self._executors = executors
        self._parallel = parallel

    async def execute(self, call: ToolCall) -> ToolResult:
        """Run one tool call. Never raises."""
        handler = getattr(self, f"_tool_{call.name}", None)
        if handler is None:
            log.warning("executor.unknown_tool", tool=call.name, tool_call_id=call.id)
            return ToolResult.error(call, f"Unknown tool: {call.name}")

        log.info("executor.dispatch", tool=call.name, tool_call_id=call.id)
        try:
            payload = await handler(call.arguments or {})
        except Exception as e:
            log.error(
                "executor.tool_failed",
                tool=call.name,
                tool_call_id=call.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ToolResult.error(call, TOOL_FAILED)
        return ToolResult.ok(call, to_jsonable(payload))

    async def execute_batch(self, calls: list[ToolCall]) -> list[ToolResult]:
        """Run every call of one model turn; results come back in request order."""
        if self._parallel:
            return list(await asyncio.gather(*(self.execute(c) for c in calls)))
        results = []
        for call in calls:
            results.append(await self.execute(call))
        return results

    # ── Per-tool adapters: arguments dict → executor call → payload ──────────

    async def _tool_get_relationship_status(self, args: dict) -> Any:
        return await self._executors.get_relationship_status()

    async def _tool_get_life_context(self, args: dict) -> Any:
        return await self._executors.get_life_context(args.get("date"))

    async def _tool_propose_orchestration(self, args: dict) -> dict:
        proposal = OrchestrationProposal.model_validate(args)
        return {"status": await self._executors.propose_orchestration(proposal)}

    async def _tool_update_relationship_status(self, args: dict) -> dict:
        update = UpdateRelationshipArgs.model_validate(args)
        return {"status": await self._executors.update_relationship_status(update)}

    async def _tool_add_task(self, args: dict) -> dict:
        task = Task.model_validate(args)
        return {"status": await self._executors.add_task(task)}

    async def _tool_delete_task(self, args: dict) -> dict:
        return {"status": await self._executors.delete_task(args["title"])}

    async def _tool_delete_relationship_status(self, args: dict) -> dict:
        return {"status": await self._executors.delete_relationship_status(args["person_name"])}

    async def _tool_save_memory(self, args: dict) -> dict:
        return {"status": await self._executors.save_memory(args["content"], args["type"])}

    async def _tool_move_tasks(self, args: dict) -> dict:
        status = await self._executors.move_tasks(
            list(args["task_identifiers"]), args["target_date"]
        )
        return {"status": status}
