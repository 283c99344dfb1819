"""
exceptions.py — lifeorch Unified Error Hierarchy

All lifeorch-specific exceptions live here. Every layer raises typed
subclasses of LifeOrchError — never bare Exception.

Import from here, not from individual modules:
    from lifeorch.exceptions import SessionCancelledError, LLMRateLimitError

Hierarchy:
    LifeOrchError
    ├── AgentError
    │   ├── SessionNotStartedError
    │   ├── SessionCancelledError
    │   └── IterationLimitError
    ├── ToolError
    │   ├── ToolRegistrationError
    │   └── ToolExecutionError
    └── StoreError
        └── AmbiguousTaskError

    LLMError  (re-exported from brain for convenience)
    ├── LLMConnectionError
    │   └── LLMTransportError
    ├── LLMRateLimitError
    ├── LLMUnavailableError
    ├── LLMContextError
    └── LLMInvalidRequestError
"""

from __future__ import annotations


# ─────────────────────────────────────────────────────────────────────────────
# Root
# ─────────────────────────────────────────────────────────────────────────────

class LifeOrchError(Exception):
    """Base class for all lifeorch exceptions."""


# ─────────────────────────────────────────────────────────────────────────────
# Agent layer
# ─────────────────────────────────────────────────────────────────────────────

class AgentError(LifeOrchError):
    """Base for session and dispatch errors."""


class SessionNotStartedError(AgentError):
    """A message was sent before any session was started and implicit start is disabled."""


class SessionCancelledError(AgentError):
    """The session was superseded by a new one while a request was in flight."""

    def __init__(self, session_id: str, message: str = "") -> None:
        self.session_id = session_id
        super().__init__(message or f"Session '{session_id}' was cancelled.")


class IterationLimitError(AgentError):
    """The model kept requesting tool calls past the configured round limit."""

    def __init__(self, max_rounds: int, message: str = "") -> None:
        self.max_rounds = max_rounds
        super().__init__(
            message or f"Model still requested tool calls after {max_rounds} round(s)."
        )


# ─────────────────────────────────────────────────────────────────────────────
# Tool layer
# ─────────────────────────────────────────────────────────────────────────────

class ToolError(LifeOrchError):
    """Base for tool catalog and execution errors."""


class ToolRegistrationError(ToolError):
    """Duplicate tool name, or registration into a frozen registry."""


class ToolExecutionError(ToolError):
    """A host executor failed while serving a tool call."""


# ─────────────────────────────────────────────────────────────────────────────
# Store layer
# ─────────────────────────────────────────────────────────────────────────────

class StoreError(LifeOrchError):
    """Base for local ledger / inventory / memory store errors."""


class AmbiguousTaskError(StoreError):
    """More than one task matches the given title exactly."""

    def __init__(self, title: str, matches: list[str]) -> None:
        self.title = title
        self.matches = matches
        listing = "\n".join(f"{i + 1}) {m}" for i, m in enumerate(matches))
        super().__init__(
            f"Multiple tasks found:\n{listing}\n\n"
            "Please be more specific or delete them one at a time."
        )


# ─────────────────────────────────────────────────────────────────────────────
# LLM layer  (re-exported here, defined in brain/llm_client.py)
# ─────────────────────────────────────────────────────────────────────────────

from lifeorch.brain.llm_client import (  # noqa: E402,F401
    LLMConnectionError,
    LLMContextError,
    LLMError,
    LLMInvalidRequestError,
    LLMRateLimitError,
    LLMTransportError,
    LLMUnavailableError,
)


__all__ = [
    "LifeOrchError",
    # Agent
    "AgentError",
    "SessionNotStartedError",
    "SessionCancelledError",
    "IterationLimitError",
    # Tool
    "ToolError",
    "ToolRegistrationError",
    "ToolExecutionError",
    # Store
    "StoreError",
    "AmbiguousTaskError",
    # LLM (re-exported)
    "LLMError",
    "LLMConnectionError",
    "LLMTransportError",
    "LLMRateLimitError",
    "LLMUnavailableError",
    "LLMContextError",
    "LLMInvalidRequestError",
]
