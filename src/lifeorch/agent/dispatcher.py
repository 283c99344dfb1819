"""
agent/dispatcher.py — Message Dispatcher

Sends one user message into the active session and drives the tool
round-trip loop until the model answers with plain text:

    user parts → model → [tool calls → ExecutorBridge → batched results → model]*
               → final text

Two variants share the same loop, bounded by max_tool_rounds:
  - send()        request/response; every model call goes through retry_transient
  - send_stream() incremental; on_update(text, thought) fires as text arrives,
                  streams are not retried

Every network await is raced against the session's cancellation event.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional

from lifeorch.agent.executor import ExecutorBridge, ToolExecutors
from lifeorch.agent.session import ConversationSession, SessionManager
from lifeorch.agent.temporal import mode_reminder
from lifeorch.brain.llm_client import (
    DEFAULT_MAX_RETRIES,
    ResponseStream,
    is_transient_error,
    retry_transient,
)
from lifeorch.brain.types import LLMResponse, MessagePart, ToolResult, TurnResult
from lifeorch.exceptions import IterationLimitError, SessionCancelledError
from lifeorch.observability.logger import get_logger

log = get_logger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 8

UpdateCallback = Callable[[str, str], None]


def _result_parts(results: list[ToolResult]) -> list[MessagePart]:
    return [MessagePart.from_tool_result(r) for r in results]


def _retryable(exc: BaseException) -> bool:
    return not isinstance(exc, SessionCancelledError) and is_transient_error(exc)


async def _next_chunk(stream: ResponseStream) -> Optional[LLMResponse]:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


class MessageDispatcher:
    """
    Turns (text, media) into a finished TurnResult for the active session.

    Usage:
        dispatcher = MessageDispatcher(session_manager, max_tool_rounds=8)
        result = await dispatcher.send("Plan my day", None, executors)
        result = await dispatcher.send_stream("Plan my day", None, executors, on_update)
    """

    def __init__(
        self,
        session_manager: SessionManager,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        parallel_tool_calls: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._sessions = session_manager
        self._max_tool_rounds = max_tool_rounds
        self._max_retries = max_retries
        self._parallel = parallel_tool_calls
        self._sleep = sleep

    # ── Part construction ─────────────────────────────────────────────────────

    def build_parts(
        self,
        session: ConversationSession,
        text: str,
        media: Optional[str] = None,
        clock_time: Optional[str] = None,
    ) -> list[MessagePart]:
        """
        Optional inline media part, then the text part carrying the system
        note with the local time and the session's mode reminder.
        """
        parts: list[MessagePart] = []
        if media:
            media_part = MessagePart.from_data_uri(media)
            if media_part is None:
                log.warning("dispatcher.media_dropped", preview=media[:40])
            else:
                parts.append(media_part)

        time_str = clock_time or self._sessions.clock_time()
        note = f"[System Note: Current Local Time is {time_str}. {mode_reminder(session.mode)}]"
        parts.append(MessagePart.from_text(f"{text}\n\n{note}"))
        return parts

    # ── Request / response ────────────────────────────────────────────────────

    async def send(
        self,
        text: str,
        media: Optional[str],
        executors: ToolExecutors,
        clock_time: Optional[str] = None,
    ) -> TurnResult:
        session = self._sessions.ensure_session()
        session.turn_count += 1
        bridge = ExecutorBridge(executors, parallel=self._parallel)
        parts = self.build_parts(session, text, media, clock_time)

        try:
            response = await self._send_with_retry(session, parts)
            rounds = 0
            while response.has_tool_calls:
                rounds = self._next_round(rounds, response)
                results = await bridge.execute_batch(response.tool_calls)
                session.raise_if_cancelled()
                response = await self._send_with_retry(session, _result_parts(results))
        except SessionCancelledError:
            log.info("dispatcher.cancelled", session_id=session.id)
            raise
        except Exception as e:
            log.error(
                "dispatcher.send_failed",
                session_id=session.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        log.info("dispatcher.turn_complete", session_id=session.id, tool_rounds=rounds)
        return TurnResult(text=response.text, thought=response.thought, tool_rounds=rounds)

    async def _send_with_retry(
        self, session: ConversationSession, parts: list[MessagePart]
    ) -> LLMResponse:
        return await retry_transient(
            lambda: session.race(session.chat.send(parts)),
            max_retries=self._max_retries,
            sleep=lambda delay: session.race(self._sleep(delay)),
            is_transient=_retryable,
        )

    # ── Streaming ─────────────────────────────────────────────────────────────

    async def send_stream(
        self,
        text: str,
        media: Optional[str],
        executors: ToolExecutors,
        on_update: UpdateCallback,
        clock_time: Optional[str] = None,
    ) -> TurnResult:
        session = self._sessions.ensure_session()
        session.turn_count += 1
        bridge = ExecutorBridge(executors, parallel=self._parallel)
        parts = self.build_parts(session, text, media, clock_time)

        acc_text = ""
        acc_thought = ""
        rounds = 0
        try:
            stream = await session.race(session.chat.send_stream(parts))
            while True:
                final, acc_text, acc_thought = await self._consume_stream(
                    session, stream, acc_text, acc_thought, on_update
                )
                if not final.has_tool_calls:
                    break
                rounds = self._next_round(rounds, final)
                results = await bridge.execute_batch(final.tool_calls)
                session.raise_if_cancelled()
                stream = await session.race(session.chat.send_stream(_result_parts(results)))
        except SessionCancelledError:
            log.info("dispatcher.stream_cancelled", session_id=session.id)
            raise
        except Exception as e:
            log.error(
                "dispatcher.stream_failed",
                session_id=session.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        log.info("dispatcher.turn_complete", session_id=session.id, tool_rounds=rounds, streamed=True)
        return TurnResult(text=acc_text, thought=acc_thought, tool_rounds=rounds)

    async def _consume_stream(
        self,
        session: ConversationSession,
        stream: ResponseStream,
        acc_text: str,
        acc_thought: str,
        on_update: UpdateCallback,
    ) -> tuple[LLMResponse, str, str]:
        """
        Drain one stream, forwarding accumulated text to on_update. Returns the
        finalized response, whose tool calls are the authoritative ones.
        """
        partial_calls: list[str] = []
        try:
            while True:
                chunk = await session.race(_next_chunk(stream))
                if chunk is None:
                    break
                partial_calls.extend(tc.name for tc in chunk.tool_calls)
                if chunk.text or chunk.thought:
                    acc_text += chunk.text
                    acc_thought += chunk.thought
                    on_update(acc_text, acc_thought)
            final = await stream.final_response()
        except SessionCancelledError:
            await stream.aclose()
            raise

        if partial_calls:
            log.debug("dispatcher.stream_tool_calls_seen", tools=partial_calls)
        return final, acc_text, acc_thought

    # ── Shared ────────────────────────────────────────────────────────────────

    def _next_round(self, rounds: int, response: LLMResponse) -> int:
        if rounds >= self._max_tool_rounds:
            raise IterationLimitError(self._max_tool_rounds)
        rounds += 1
        log.info(
            "dispatcher.tool_round",
            round=rounds,
            tools=[tc.name for tc in response.tool_calls],
        )
        return rounds
