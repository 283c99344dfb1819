"""
brain/gemini_client.py — Google Gemini Chat Client

Uses the `google-genai` SDK (google.genai), async surface (`client.aio`).
Each start_chat() prepares a fresh `client.aio.chats` session seeded with the
system instruction and the function declarations; the chat is created on the
first send and its history is kept by the SDK.

Install: pip install google-genai
Get key: https://aistudio.google.com/app/apikey
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Callable
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

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
)
from lifeorch.brain.types import (
    FinishReason,
    LLMConfig,
    LLMResponse,
    MessagePart,
    Provider,
    TokenUsage,
    ToolCall,
    ToolSchema,
)
from lifeorch.observability.logger import get_logger

log = get_logger(__name__)

_TYPE_MAP = {
    "string": genai_types.Type.STRING,
    "integer": genai_types.Type.INTEGER,
    "number": genai_types.Type.NUMBER,
    "boolean": genai_types.Type.BOOLEAN,
    "array": genai_types.Type.ARRAY,
    "object": genai_types.Type.OBJECT,
}


class GeminiChatSession(BaseChatSession):
    """
    Wraps one google-genai AsyncChat.

    The AsyncChat is opened on the first send, so a missing key or a client
    construction error surfaces there as an LLMError, never at session start.
    """

    def __init__(self, open_chat: Callable[[], Any], model: str):
        self._open_chat = open_chat
        self._chat: Any = None
        self._model = model

    def _get_chat(self) -> Any:
        if self._chat is None:
            self._chat = self._open_chat()
            log.debug("gemini.chat.opened", model=self._model)
        return self._chat

    async def send(self, parts: list[MessagePart]) -> LLMResponse:
        log.debug("gemini.send.start", model=self._model, parts=len(parts))
        try:
            response = await self._get_chat().send_message(_to_provider_parts(parts))
        except LLMError:
            raise
        except Exception as e:
            raise _normalise_error(e) from e

        result = _from_provider_response(response, self._model)
        log.debug(
            "gemini.send.complete",
            model=self._model,
            finish_reason=result.finish_reason,
            tool_calls=len(result.tool_calls),
        )
        return result

    async def send_stream(self, parts: list[MessagePart]) -> ResponseStream:
        log.debug("gemini.stream.start", model=self._model, parts=len(parts))
        try:
            iterator = await self._get_chat().send_message_stream(_to_provider_parts(parts))
        except LLMError:
            raise
        except Exception as e:
            raise _normalise_error(e) from e
        return ResponseStream(self._iter_chunks(iterator), on_close=getattr(iterator, "aclose", None))

    async def _iter_chunks(self, iterator: AsyncIterator[Any]) -> AsyncIterator[LLMResponse]:
        try:
            async for chunk in iterator:
                yield _from_provider_response(chunk, self._model)
        except LLMError:
            raise
        except Exception as e:
            raise _normalise_error(e) from e


class GeminiClient(BaseLLMClient):
    """
    Google Gemini client using the google-genai SDK.

    The underlying genai.Client is created lazily so a missing API key does
    not prevent construction; the first network call fails instead.
    """

    provider = Provider.GEMINI

    def __init__(self, api_key: Optional[str] = None):
        super().__init__(api_key=api_key)
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise LLMConnectionError(
                    "GEMINI_API_KEY is not set", provider="gemini", status_code=401
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def start_chat(
        self,
        system_instruction: str,
        tools: list[ToolSchema],
        config: LLMConfig,
    ) -> BaseChatSession:
        gen_config = genai_types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=_to_provider_tools(tools) if tools else None,
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
            automatic_function_calling=genai_types.AutomaticFunctionCallingConfig(disable=True),
            thinking_config=(
                genai_types.ThinkingConfig(include_thoughts=True)
                if config.include_thoughts
                else None
            ),
        )
        log.debug("gemini.chat.configured", model=config.model, tools=len(tools))
        return GeminiChatSession(
            lambda: self._get_client().aio.chats.create(model=config.model, config=gen_config),
            config.model,
        )

    async def count_tokens(self, text: str, config: LLMConfig) -> int:
        try:
            response = await self._get_client().aio.models.count_tokens(
                model=config.model,
                contents=text,
            )
        except LLMError:
            raise
        except Exception as e:
            raise _normalise_error(e) from e
        return response.total_tokens or 0


# ─────────────────────────────────────────────────────────────────────────────
# Translation helpers
# ─────────────────────────────────────────────────────────────────────────────


def _to_provider_parts(parts: list[MessagePart]) -> list[genai_types.Part]:
    """Translate internal MessageParts → Gemini Parts (order preserved)."""
    out: list[genai_types.Part] = []
    for part in parts:
        if part.text is not None:
            out.append(genai_types.Part(text=part.text))
        elif part.media is not None:
            out.append(genai_types.Part.from_bytes(
                data=part.media.data,
                mime_type=part.media.mime_type,
            ))
        elif part.tool_result is not None:
            out.append(genai_types.Part(
                function_response=genai_types.FunctionResponse(
                    name=part.tool_result.name,
                    response=part.tool_result.response,
                )
            ))
    return out


def _to_schema(node: dict[str, Any]) -> genai_types.Schema:
    """Translate a JSON-schema style dict → Gemini Schema, recursively."""
    kwargs: dict[str, Any] = {
        "type": _TYPE_MAP.get(node.get("type", "string"), genai_types.Type.STRING),
    }
    if node.get("description"):
        kwargs["description"] = node["description"]
    if node.get("enum"):
        kwargs["enum"] = list(node["enum"])
        kwargs["format"] = "enum"
    if "items" in node:
        kwargs["items"] = _to_schema(node["items"])
    if "properties" in node:
        kwargs["properties"] = {
            name: _to_schema(prop) for name, prop in node["properties"].items()
        }
    if node.get("required"):
        kwargs["required"] = list(node["required"])
    return genai_types.Schema(**kwargs)


def _to_provider_tools(tools: list[ToolSchema]) -> list[genai_types.Tool]:
    """Translate ToolSchema list → a single Gemini Tool of FunctionDeclarations."""
    declarations = []
    for t in tools:
        declarations.append(genai_types.FunctionDeclaration(
            name=t.name,
            description=t.description,
            parameters=_to_schema(t.parameters) if t.parameters else None,
        ))
    return [genai_types.Tool(function_declarations=declarations)]


def _from_provider_response(response: Any, model_name: str) -> LLMResponse:
    """Translate a GenerateContentResponse (full or stream chunk) → LLMResponse."""
    text_parts: list[str] = []
    thought_parts: list[str] = []
    tool_calls: list[ToolCall] = []
    finish_reason: Optional[FinishReason] = None

    candidates = getattr(response, "candidates", None) or []
    if candidates:
        candidate = candidates[0]
        content = getattr(candidate, "content", None)
        for part in (getattr(content, "parts", None) or []):
            fc = getattr(part, "function_call", None)
            if fc:
                tool_calls.append(ToolCall(
                    id=getattr(fc, "id", None) or str(uuid.uuid4()),
                    name=fc.name,
                    arguments=dict(fc.args) if fc.args else {},
                ))
            elif getattr(part, "text", None):
                if getattr(part, "thought", False):
                    thought_parts.append(part.text)
                else:
                    text_parts.append(part.text)

        if candidate.finish_reason:
            reason_str = str(candidate.finish_reason).upper()
            if "MAX_TOKENS" in reason_str:
                finish_reason = FinishReason.LENGTH
            elif "SAFETY" in reason_str or "PROHIBITED" in reason_str:
                finish_reason = FinishReason.SAFETY
            else:
                finish_reason = FinishReason.STOP

    if tool_calls:
        finish_reason = FinishReason.TOOL_CALLS

    usage = TokenUsage()
    um = getattr(response, "usage_metadata", None)
    if um:
        usage = TokenUsage(
            input_tokens=getattr(um, "prompt_token_count", 0) or 0,
            output_tokens=getattr(um, "candidates_token_count", 0) or 0,
        )

    return LLMResponse(
        text="".join(text_parts),
        thought="".join(thought_parts),
        tool_calls=tool_calls,
        finish_reason=finish_reason,
        usage=usage,
        model=model_name,
        provider=Provider.GEMINI,
    )


def _normalise_error(exc: Exception) -> LLMError:
    """Map SDK / transport exceptions onto the typed LLM error kinds."""
    if isinstance(exc, LLMError):
        return exc

    if isinstance(exc, genai_errors.APIError):
        code = exc.code or 0
        message = str(exc)
        if code == 429:
            return LLMRateLimitError(message, provider="gemini")
        if code in (500, 502, 503, 504):
            return LLMUnavailableError(message, provider="gemini", status_code=code)
        if code in (401, 403):
            return LLMConnectionError(message, provider="gemini", status_code=code)
        if code == 400 and ("too long" in message.lower() or "token" in message.lower()):
            return LLMContextError(message, provider="gemini", status_code=code)
        if 400 <= code < 500:
            return LLMInvalidRequestError(message, provider="gemini", status_code=code)
        return LLMError(message, provider="gemini", status_code=code or None)

    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return LLMTransportError(str(exc) or type(exc).__name__, provider="gemini")

    # untyped: keep the message so retry_transient can still match markers
    return LLMError(str(exc), provider="gemini")
