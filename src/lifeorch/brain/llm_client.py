"""
brain/llm_client.py — Abstract Chat Client + Transient-Failure Retry

The remote model is reached through two abstractions:
  - BaseLLMClient.start_chat() opens a multi-turn chat seeded with a system
    instruction and tool declarations.
  - BaseChatSession.send() / send_stream() push one user turn (text, inline
    media or batched tool results) and return a normalised LLMResponse or a
    ResponseStream of incremental chunks.

Also here:
  - The LLM error hierarchy (typed transient kinds: rate limit, unavailable,
    transport failure).
  - is_transient_error() / retry_transient() — bounded exponential backoff
    used around every non-streaming send.
"""

from __future__ import annotations

import asyncio
import random
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Optional, TypeVar

from lifeorch.brain.types import (
    FinishReason,
    LLMConfig,
    LLMResponse,
    MessagePart,
    Provider,
    TokenUsage,
    ToolSchema,
)
from lifeorch.observability.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")

# Retry policy defaults
DEFAULT_MAX_RETRIES = 3
_TRANSIENT_MARKERS = ("503", "429", "fetch failed")


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────


class LLMError(Exception):
    """Base exception for all LLM client errors."""
    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class LLMConnectionError(LLMError):
    """Provider unreachable or authentication failed."""


class LLMTransportError(LLMConnectionError):
    """The request never completed (DNS, reset connection, read timeout)."""


class LLMRateLimitError(LLMError):
    """Rate limit or quota hit (HTTP 429). Retried on the regular backoff schedule."""
    def __init__(self, message: str, provider: str = ""):
        super().__init__(message, provider, status_code=429)


class LLMUnavailableError(LLMError):
    """Provider temporarily unavailable or overloaded (HTTP 5xx)."""


class LLMContextError(LLMError):
    """Input exceeds model context window."""


class LLMInvalidRequestError(LLMError):
    """Bad request — invalid parameters or schema."""


# ─────────────────────────────────────────────────────────────────────────────
# Chat session + stream abstractions
# ─────────────────────────────────────────────────────────────────────────────


def aggregate_chunks(chunks: list[LLMResponse]) -> LLMResponse:
    """Fold streamed chunks into the finalized response for the whole stream."""
    if not chunks:
        return LLMResponse(finish_reason=FinishReason.STOP)

    tool_calls = []
    seen_ids: set[str] = set()
    finish_reason: Optional[FinishReason] = None
    usage = TokenUsage()
    for chunk in chunks:
        for tc in chunk.tool_calls:
            if tc.id not in seen_ids:
                seen_ids.add(tc.id)
                tool_calls.append(tc)
        if chunk.finish_reason is not None:
            finish_reason = chunk.finish_reason
        if chunk.usage.total_tokens:
            usage = chunk.usage

    if tool_calls:
        finish_reason = FinishReason.TOOL_CALLS

    last = chunks[-1]
    return LLMResponse(
        text="".join(c.text for c in chunks),
        thought="".join(c.thought for c in chunks),
        tool_calls=tool_calls,
        finish_reason=finish_reason or FinishReason.STOP,
        usage=usage,
        model=last.model,
        provider=last.provider,
    )


class ResponseStream:
    """
    Async iterator over incremental LLMResponse chunks.

    final_response() drains whatever is left and returns the finalized
    response; its tool_calls list is authoritative (individual chunks may
    report calls incompletely). aclose() also runs `on_close`, which releases
    the provider stream even when no chunk was read yet.
    """

    def __init__(
        self,
        chunks: AsyncIterator[LLMResponse],
        finalize: Optional[Callable[[list[LLMResponse]], LLMResponse]] = None,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self._chunks = chunks
        self._finalize = finalize or aggregate_chunks
        self._on_close = on_close
        self._seen: list[LLMResponse] = []
        self._exhausted = False

    def __aiter__(self) -> "ResponseStream":
        return self

    async def __anext__(self) -> LLMResponse:
        if self._exhausted:
            raise StopAsyncIteration
        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            self._exhausted = True
            raise
        self._seen.append(chunk)
        return chunk

    async def final_response(self) -> LLMResponse:
        async for _ in self:
            pass
        return self._finalize(self._seen)

    async def aclose(self) -> None:
        self._exhausted = True
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._on_close is not None:
            await self._on_close()


class BaseChatSession(ABC):
    """One multi-turn chat with the remote model. History lives provider-side."""

    @abstractmethod
    async def send(self, parts: list[MessagePart]) -> LLMResponse:
        """Send one user turn and wait for the complete response."""
        ...

    @abstractmethod
    async def send_stream(self, parts: list[MessagePart]) -> ResponseStream:
        """Send one user turn and return a stream of incremental chunks."""
        ...


class BaseLLMClient(ABC):
    """
    Abstract base for remote model clients.

    Subclasses must implement:
      - start_chat()   -> open a chat seeded with system instruction + tools
      - count_tokens() -> token count for a text under the given model
    """

    provider: Provider = Provider.GEMINI

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @abstractmethod
    def start_chat(
        self,
        system_instruction: str,
        tools: list[ToolSchema],
        config: LLMConfig,
    ) -> BaseChatSession:
        ...

    @abstractmethod
    async def count_tokens(self, text: str, config: LLMConfig) -> int:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


# ─────────────────────────────────────────────────────────────────────────────
# Retry logic
# ─────────────────────────────────────────────────────────────────────────────


def is_transient_error(exc: BaseException) -> bool:
    """
    Decide whether a failed send is worth retrying.

    Typed kinds from the transport layer decide first:
      - LLMRateLimitError, LLMUnavailableError, LLMTransportError → retry
      - LLMContextError, LLMInvalidRequestError, LLMConnectionError (auth) → never
    Untyped errors (and a bare LLMError) fall back to the message markers
    "503", "429" and "fetch failed".
    """
    if isinstance(exc, (LLMRateLimitError, LLMUnavailableError, LLMTransportError)):
        return True
    if isinstance(exc, (LLMContextError, LLMInvalidRequestError, LLMConnectionError)):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def backoff_delay(attempt: int) -> float:
    """Delay before retry number `attempt` (1-based): 2^attempt s + [0, 1) s jitter."""
    return 2 ** attempt + random.uniform(0, 1)


async def retry_transient(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    is_transient: Callable[[BaseException], bool] = is_transient_error,
) -> T:
    """
    Run `operation` with up to `max_retries` retries on transient failures.

    Non-transient errors and the last transient error propagate unchanged.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries or not is_transient(e):
                raise
            attempt += 1
            delay = backoff_delay(attempt)
            log.warning(
                "llm.retrying",
                attempt=attempt,
                max_retries=max_retries,
                delay_s=round(delay, 2),
                error=str(e),
                error_type=type(e).__name__,
            )
            await sleep(delay)
