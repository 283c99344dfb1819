"""
agent/orchestrator.py — Life Orchestrator Facade

The single entry point a host application talks to. Owns one
SessionManager and one MessageDispatcher; several Orchestrators can live
side by side without sharing anything.

For each user message the orchestrator:
    1. Ensures a session exists  (SessionManager)
    2. Sends the message         (MessageDispatcher, request/response or streaming)
    3. Routes tool calls to the host's ToolExecutors until the model answers

Usage:
    orc = Orchestrator.from_settings(settings)
    orc.start_new_session(build_session_context(target, datetime.now()))
    result = await orc.send("What does my day look like?", None, executors)

    await orc.send_stream("Plan tomorrow", None, executors, on_update=print_partial)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional

from lifeorch.agent.dispatcher import DEFAULT_MAX_TOOL_ROUNDS, MessageDispatcher, UpdateCallback
from lifeorch.agent.executor import ToolExecutors
from lifeorch.agent.session import Clock, ConversationSession, SessionManager
from lifeorch.agent.temporal import TemporalMode
from lifeorch.brain.llm_client import DEFAULT_MAX_RETRIES, BaseLLMClient
from lifeorch.brain.types import LLMConfig, TurnResult
from lifeorch.observability.logger import get_logger
from lifeorch.tools.tool_registry import ToolRegistry, build_default_registry

log = get_logger(__name__)


class Orchestrator:
    """
    Coordinates sessions and message dispatch for one user.

    Inject all dependencies via constructor; use from_settings() for
    convenience when wiring up the application.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        llm_config: Optional[LLMConfig] = None,
        tool_registry: Optional[ToolRegistry] = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        parallel_tool_calls: bool = False,
        auto_start_session: bool = True,
        timezone: Optional[str] = None,
        user_mode: str = "live",
        clock: Optional[Clock] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._llm = llm_client
        self._config = llm_config or LLMConfig()
        self._registry = tool_registry or build_default_registry()

        self._sessions = SessionManager(
            llm_client=llm_client,
            registry=self._registry,
            llm_config=self._config,
            clock=clock,
            timezone=timezone,
            user_mode=user_mode,
            auto_start=auto_start_session,
        )
        self._dispatcher = MessageDispatcher(
            self._sessions,
            max_tool_rounds=max_tool_rounds,
            max_retries=max_retries,
            parallel_tool_calls=parallel_tool_calls,
            sleep=sleep,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────────────────

    def start_new_session(self, context: Optional[str] = None) -> ConversationSession:
        return self._sessions.start_new_session(context)

    def end_session(self) -> None:
        self._sessions.end_session()

    @property
    def mode(self) -> Optional[TemporalMode]:
        return self._sessions.mode

    @property
    def session(self) -> Optional[ConversationSession]:
        return self._sessions.current

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    # ─────────────────────────────────────────────────────────────────────────
    # Messages
    # ─────────────────────────────────────────────────────────────────────────

    async def send(
        self,
        text: str,
        media: Optional[str],
        executors: ToolExecutors,
        clock_time: Optional[str] = None,
    ) -> TurnResult:
        return await self._dispatcher.send(text, media, executors, clock_time)

    async def send_stream(
        self,
        text: str,
        media: Optional[str],
        executors: ToolExecutors,
        on_update: UpdateCallback,
        clock_time: Optional[str] = None,
    ) -> TurnResult:
        return await self._dispatcher.send_stream(text, media, executors, on_update, clock_time)

    async def count_tokens(self, text: str) -> int:
        """Token count of `text` under the session model; 0 if counting fails."""
        try:
            return await self._llm.count_tokens(text, self._config)
        except Exception as e:
            log.warning("orchestrator.count_tokens_failed", error=str(e), error_type=type(e).__name__)
            return 0

    # ─────────────────────────────────────────────────────────────────────────
    # Factory
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_settings(
        cls,
        settings,
        llm_client: Optional[BaseLLMClient] = None,
        clock: Optional[Clock] = None,
    ) -> "Orchestrator":
        """Create an Orchestrator from the lifeorch Settings object."""
        if not settings.gemini_api_key:
            log.warning(
                "orchestrator.api_key_missing",
                hint="Set GEMINI_API_KEY; model calls will fail until it is present.",
            )
        if llm_client is None:
            from lifeorch.brain import LLMClientFactory
            llm_client = LLMClientFactory.from_settings(settings)

        llm_config = LLMConfig(
            model=settings.llm.model,
            temperature=settings.llm.temperature,
            max_output_tokens=settings.llm.max_output_tokens,
            include_thoughts=settings.llm.include_thoughts,
        )
        return cls(
            llm_client=llm_client,
            llm_config=llm_config,
            max_tool_rounds=settings.agent.max_tool_rounds,
            max_retries=settings.llm.retry.max_retries,
            parallel_tool_calls=settings.agent.parallel_tool_calls,
            auto_start_session=settings.agent.auto_start_session,
            timezone=settings.session.timezone,
            user_mode=settings.session.user_mode,
            clock=clock,
        )
