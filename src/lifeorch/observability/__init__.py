"""observability/ — structured logging for lifeorch."""

from lifeorch.observability.logger import bind_session, clear_session, get_logger, setup_logging

__all__ = ["get_logger", "setup_logging", "bind_session", "clear_session"]
