"""
agent/ — lifeorch Agent Core

Public API:
    from lifeorch.agent import Orchestrator, ToolExecutors, TemporalMode

Component overview:
    TemporalMode / classify_temporal_mode   Past / today / future from session context
    build_session_context                   Renders the context block for a target date
    ToolExecutors / ExecutorBridge          Host tool implementations + per-call isolation
    SessionManager / ConversationSession    One active chat, cancellable
    MessageDispatcher                       Bounded tool round-trip loop (plain + streaming)
    Orchestrator                            Facade wiring all of the above
"""

from lifeorch.agent.context_builder import build_session_context
from lifeorch.agent.dispatcher import MessageDispatcher
from lifeorch.agent.executor import ExecutorBridge, ToolExecutors
from lifeorch.agent.orchestrator import Orchestrator
from lifeorch.agent.session import ConversationSession, SessionManager
from lifeorch.agent.temporal import TemporalMode, classify_temporal_mode

__all__ = [
    "Orchestrator",
    "SessionManager",
    "ConversationSession",
    "MessageDispatcher",
    "ExecutorBridge",
    "ToolExecutors",
    "TemporalMode",
    "classify_temporal_mode",
    "build_session_context",
]
