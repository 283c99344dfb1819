"""
brain/__init__.py — lifeorch Remote Model Layer
"""

from __future__ import annotations

from typing import Optional

from lifeorch.brain.llm_client import (
    BaseChatSession,
    BaseLLMClient,
    LLMConnectionError,
    LLMContextError,
    LLMError,
    LLMInvalidRequestError,
    LLMRateLimitError,
    LLMTransportError,
    LLMUnavailableError,
    ResponseStream,
    is_transient_error,
    retry_transient,
)
from lifeorch.brain.types import (
    FinishReason,
    LLMConfig,
    LLMResponse,
    MessagePart,
    Provider,
    TokenUsage,
    ToolCall,
    ToolResult,
    ToolSchema,
    TurnResult,
)

__all__ = [
    "LLMClientFactory",
    "BaseLLMClient",
    "BaseChatSession",
    "ResponseStream",
    "is_transient_error",
    "retry_transient",
    "LLMError",
    "LLMConnectionError",
    "LLMTransportError",
    "LLMRateLimitError",
    "LLMUnavailableError",
    "LLMContextError",
    "LLMInvalidRequestError",
    "MessagePart",
    "LLMConfig",
    "LLMResponse",
    "ToolCall",
    "ToolResult",
    "ToolSchema",
    "TokenUsage",
    "TurnResult",
    "Provider",
    "FinishReason",
]


class LLMClientFactory:

    @staticmethod
    def create(provider: str, api_key: Optional[str] = None) -> BaseLLMClient:
        provider = provider.lower().strip()

        if provider == "gemini":
            from lifeorch.brain.gemini_client import GeminiClient
            return GeminiClient(api_key=api_key)

        raise ValueError(
            f"Unknown LLM provider: '{provider}'. Valid options: gemini"
        )

    @staticmethod
    def from_settings(settings) -> BaseLLMClient:
        """Create the configured client. A missing key is tolerated here."""
        return LLMClientFactory.create(
            provider=settings.llm.provider,
            api_key=settings.gemini_api_key,
        )
