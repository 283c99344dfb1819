"""
agent/session.py — Conversation Sessions

A ConversationSession is one remote chat seeded with the composed system
instruction (base + temporal mode block + context) and the tool catalog.
It carries a cancellation event; every network await made on its behalf is
raced against that event so a superseded session stops promptly.

SessionManager owns the single active session. Starting a new one cancels
the previous one first; nothing carries over between them.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Optional, TypeVar

from lifeorch.agent.context_builder import (
    default_session_context,
    resolve_timezone,
    session_clock_time,
)
from lifeorch.agent.instructions import BASE_INSTRUCTION
from lifeorch.agent.temporal import TemporalMode, classify_temporal_mode, mode_instruction
from lifeorch.brain.llm_client import BaseChatSession, BaseLLMClient
from lifeorch.brain.types import LLMConfig
from lifeorch.exceptions import SessionCancelledError, SessionNotStartedError
from lifeorch.observability.logger import bind_session, clear_session, get_logger
from lifeorch.tools.tool_registry import ToolRegistry

log = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def compose_system_instruction(mode: TemporalMode, context: str) -> str:
    return BASE_INSTRUCTION + mode_instruction(mode) + "\n\n" + context


class ConversationSession:
    """Runtime state of one remote chat. Replaced, never reused."""

    def __init__(
        self,
        session_id: str,
        mode: TemporalMode,
        system_instruction: str,
        context: str,
        chat: BaseChatSession,
    ):
        self.id = session_id
        self.mode = mode
        self.system_instruction = system_instruction
        self.context = context
        self.chat = chat
        self.created_at = time.time()
        self.turn_count: int = 0

        # Cooperative cancellation
        self._cancel_event = asyncio.Event()

    @classmethod
    def create(
        cls,
        mode: TemporalMode,
        system_instruction: str,
        context: str,
        chat: BaseChatSession,
    ) -> "ConversationSession":
        return cls(
            session_id=f"sess_{uuid.uuid4().hex[:12]}",
            mode=mode,
            system_instruction=system_instruction,
            context=context,
            chat=chat,
        )

    # ── Cancellation ─────────────────────────────────────────────────────────

    def cancel(self) -> None:
        if not self._cancel_event.is_set():
            self._cancel_event.set()
            log.info("session.cancel_requested", session_id=self.id)

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise SessionCancelledError(self.id)

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless this session is cancelled first.

        On cancellation the pending work is cancelled and SessionCancelledError
        is raised. Cancellation wins when both finish together.
        """
        if self.is_cancelled():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SessionCancelledError(self.id)

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
                # let the cancelled work unwind before the caller closes anything it used
                await asyncio.wait({work})

        if self.is_cancelled():
            if not work.cancelled():
                work.exception()     # mark retrieved
            raise SessionCancelledError(self.id)
        return work.result()

    def status_summary(self) -> dict:
        return {
            "session_id": self.id,
            "mode": self.mode.value,
            "turns": self.turn_count,
            "cancelled": self.is_cancelled(),
            "uptime_seconds": round(time.time() - self.created_at, 1),
        }

    def __repr__(self) -> str:
        return f"<ConversationSession id={self.id} mode={self.mode.value}>"


class SessionManager:
    """
    Starts, replaces and ends the single active ConversationSession.

    Usage:
        manager = SessionManager(client, build_default_registry(), LLMConfig())
        session = manager.start_new_session(context)
        manager.mode          # → TemporalMode.PLANNING
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        registry: ToolRegistry,
        llm_config: Optional[LLMConfig] = None,
        clock: Optional[Clock] = None,
        timezone: Optional[str] = None,
        user_mode: str = "live",
        auto_start: bool = True,
    ):
        self._client = llm_client
        self._registry = registry
        self._llm_config = llm_config or LLMConfig()
        self._clock: Clock = clock or datetime.now
        self._timezone = timezone
        self._user_mode = user_mode
        self._auto_start = auto_start
        self._current: Optional[ConversationSession] = None

    @property
    def user_mode(self) -> str:
        return self._user_mode

    def clock_time(self) -> str:
        """Local time text for the system note; fixed at 09:00 AM in demo mode."""
        return session_clock_time(self._clock(), self._user_mode)

    @property
    def current(self) -> Optional[ConversationSession]:
        return self._current

    @property
    def has_session(self) -> bool:
        return self._current is not None

    @property
    def mode(self) -> Optional[TemporalMode]:
        return self._current.mode if self._current else None

    def start_new_session(self, context: Optional[str] = None) -> ConversationSession:
        """
        Open a fresh chat for `context`, then cancel and replace the active
        session. If opening the chat fails the active session is left as is.

        A missing context is replaced by a minimal one built from the clock;
        a context without a `User Timezone:` line gets one appended.
        """
        now = self._clock()
        if not context:
            context = default_session_context(now, self._timezone, self._user_mode)
            log.warning("session.context_missing", fallback_date=now.date().isoformat())
        if "User Timezone:" not in context:
            context += f"\nUser Timezone: {resolve_timezone(self._timezone)}"

        mode = classify_temporal_mode(context, today=now.date())
        instruction = compose_system_instruction(mode, context)
        chat = self._client.start_chat(
            system_instruction=instruction,
            tools=self._registry.to_llm_schemas(),
            config=self._llm_config,
        )
        session = ConversationSession.create(
            mode=mode,
            system_instruction=instruction,
            context=context,
            chat=chat,
        )

        if self._current is not None:
            self._current.cancel()
        self._current = session
        bind_session(session.id, mode.value)
        log.info(
            "session.started",
            session_id=session.id,
            mode=mode.value,
            tools=len(self._registry),
            model=self._llm_config.model,
        )
        return session

    def ensure_session(self) -> ConversationSession:
        """Return the active session, starting one implicitly if allowed."""
        if self._current is not None:
            return self._current
        if not self._auto_start:
            raise SessionNotStartedError(
                "No active session. Call start_new_session() before sending messages."
            )
        log.warning("session.implicit_start")
        return self.start_new_session()

    def end_session(self) -> None:
        if self._current is None:
            return
        self._current.cancel()
        log.info("session.ended", session_id=self._current.id)
        self._current = None
        clear_session()
