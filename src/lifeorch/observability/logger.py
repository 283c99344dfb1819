"""
observability/logger.py — lifeorch Structured Logger

Sets up structlog with:
  - JSON output to a rotating log file
  - Optional human-readable console output (dev mode) or JSON (pipe mode)
  - Consistent fields on every log line: timestamp, level, event, session_id, mode
  - Chatty HTTP client loggers (httpx, httpcore, google_genai) raised to WARNING

Usage:
    from lifeorch.observability.logger import get_logger, setup_logging
    setup_logging(level="INFO", log_dir="./data/logs", console_output=False)
    log = get_logger(__name__)
    log.info("session.started", mode="active")
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

# Third-party loggers that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models", "urllib3")

# Run on every event, whether it came from structlog or from a plain stdlib
# logger inside google-genai / httpx.
_PRE_CHAIN: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_PRE_CHAIN,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path = "./data/logs",
    json_format: Optional[bool] = None,  # None = auto-detect from tty
    console_output: bool = True,
    max_bytes: int = 20 * 1024 * 1024,   # 20 MB
    backup_count: int = 5,
) -> None:
    """
    Route structlog through stdlib logging into `<log_dir>/lifeorch.log`
    (rotating, always JSON) and, if `console_output`, stdout. Call once from
    main.bootstrap().

    `json_format` applies to the console only: True for JSON, False for the
    coloured dev renderer, None to pick by whether stdout is a TTY.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if json_format is None:
        json_format = not sys.stdout.isatty()

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # the log file is JSON whatever the console shows
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_path / "lifeorch.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    handlers: list[logging.Handler] = [file_handler]

    if console_output:
        console_renderer = (
            structlog.processors.JSONRenderer()
            if json_format
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_formatter(console_renderer))
        handlers.append(console_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "lifeorch", **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Module logger. Event names are dotted, keyed by component:

        log = get_logger(__name__)
        log.info("dispatcher.tool_round", round=1, tools=["get_life_context"])
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def bind_session(session_id: str, mode: str) -> None:
    """
    Bind the active conversation session to all subsequent log calls in this
    async context (structlog contextvars), so every line from the dispatcher
    and executor bridge carries session_id and mode without passing them.
    """
    structlog.contextvars.bind_contextvars(session_id=session_id, mode=mode)


def clear_session() -> None:
    """Clear session context vars at the end of a turn."""
    structlog.contextvars.clear_contextvars()
