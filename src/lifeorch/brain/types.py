"""
brain/types.py — lifeorch Brain Data Models

Provider-agnostic types exchanged with the remote model. The Gemini client
maps its native request/response shapes into these; the dispatcher and the
executor bridge only ever see these.
"""

from __future__ import annotations

import base64
import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class Provider(str, Enum):
    GEMINI = "gemini"


class FinishReason(str, Enum):
    STOP = "stop"               # normal completion
    TOOL_CALLS = "tool_calls"   # model wants to call tools
    LENGTH = "length"           # hit max_output_tokens
    SAFETY = "safety"           # blocked by provider safety filters


# ─────────────────────────────────────────────────────────────────────────────
# Tool calling types
# ─────────────────────────────────────────────────────────────────────────────


class ToolCall(BaseModel):
    """A single function call requested by the model."""
    id: str = Field(..., description="Unique ID for this call")
    name: str = Field(..., description="Tool/function name to call")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Parsed arguments")


class ToolResult(BaseModel):
    """
    The outcome of one ToolCall, sent back to the model.

    `response` is always keyed by "result"; on failure the payload is an
    error marker such as {"error": "Failed to execute tool"}.
    """
    tool_call_id: str = Field(..., description="Matches ToolCall.id")
    name: str = Field(..., description="Matches ToolCall.name")
    response: dict[str, Any] = Field(default_factory=dict)
    is_error: bool = False

    @classmethod
    def ok(cls, call: ToolCall, payload: Any) -> "ToolResult":
        return cls(tool_call_id=call.id, name=call.name, response={"result": payload})

    @classmethod
    def error(cls, call: ToolCall, message: str) -> "ToolResult":
        return cls(
            tool_call_id=call.id,
            name=call.name,
            response={"result": {"error": message}},
            is_error=True,
        )


class ToolSchema(BaseModel):
    """
    Provider-agnostic tool declaration. `parameters` is a JSON-schema style
    dict; clients translate it into their native schema type.
    """
    name: str
    description: str
    parameters: Optional[dict[str, Any]] = None


# ─────────────────────────────────────────────────────────────────────────────
# Outgoing message parts
# ─────────────────────────────────────────────────────────────────────────────

_DATA_URI_RE = re.compile(r"^data:(.+?);base64,(.+)$", re.DOTALL)


class InlineMedia(BaseModel):
    mime_type: str
    data: bytes


class MessagePart(BaseModel):
    """
    One element of an outgoing user turn. Exactly one of text, media or
    tool_result is set.
    """
    text: Optional[str] = None
    media: Optional[InlineMedia] = None
    tool_result: Optional[ToolResult] = None

    @classmethod
    def from_text(cls, text: str) -> "MessagePart":
        return cls(text=text)

    @classmethod
    def from_media(cls, mime_type: str, data: bytes) -> "MessagePart":
        return cls(media=InlineMedia(mime_type=mime_type, data=data))

    @classmethod
    def from_tool_result(cls, result: ToolResult) -> "MessagePart":
        return cls(tool_result=result)

    @classmethod
    def from_data_uri(cls, uri: str) -> Optional["MessagePart"]:
        """Parse `data:<mime>;base64,<payload>`. Returns None if it doesn't match."""
        match = _DATA_URI_RE.match(uri.strip())
        if not match:
            return None
        try:
            data = base64.b64decode(match.group(2), validate=False)
        except ValueError:
            return None
        return cls.from_media(match.group(1), data)


# ─────────────────────────────────────────────────────────────────────────────
# LLM config
# ─────────────────────────────────────────────────────────────────────────────


class LLMConfig(BaseModel):
    """Per-session generation settings passed to start_chat()."""
    model: str = "gemini-2.5-pro"
    temperature: Optional[float] = None      # None = provider default
    max_output_tokens: Optional[int] = None
    include_thoughts: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# LLM response
# ─────────────────────────────────────────────────────────────────────────────


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMResponse(BaseModel):
    """
    Normalised model response. Also used for individual stream chunks, in
    which case `text` holds only that chunk's increment.
    """
    text: str = ""
    thought: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    finish_reason: Optional[FinishReason] = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = ""
    provider: Provider = Provider.GEMINI

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0


class TurnResult(BaseModel):
    """What a dispatch returns to the caller once every tool round is resolved."""
    text: str = ""
    thought: str = ""
    tool_rounds: int = 0
