"""
agent/temporal.py — Temporal Mode Classifier

Derives whether a conversation is about a past day (reflection), today
(active) or a future day (planning) from the session context text the host
passes to start_new_session().

Recognised markers (case-insensitive, one per line):
    Is Future Date: true|false
    Target Date: <date>   e.g. "2024-01-01" or "1/2/2024 (Format for add_task: 2024-01-02)"
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Optional

from lifeorch.agent.instructions import (
    ACTIVE_MODE_INSTRUCTION,
    PLANNING_MODE_INSTRUCTION,
    REFLECTION_MODE_INSTRUCTION,
)
from lifeorch.observability.logger import get_logger

log = get_logger(__name__)

_FUTURE_RE = re.compile(r"Is Future Date:\s*(true|false)", re.IGNORECASE)
_TARGET_RE = re.compile(r"Target Date:\s*([^\n]+)", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

_DATE_FORMATS = (
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%A, %B %d, %Y",
)


class TemporalMode(str, Enum):
    REFLECTION = "reflection"   # target date is in the past
    ACTIVE = "active"           # target date is today (or unknown)
    PLANNING = "planning"       # target date is in the future


_MODE_INSTRUCTIONS: dict[TemporalMode, str] = {
    TemporalMode.REFLECTION: REFLECTION_MODE_INSTRUCTION,
    TemporalMode.ACTIVE: ACTIVE_MODE_INSTRUCTION,
    TemporalMode.PLANNING: PLANNING_MODE_INSTRUCTION,
}

_MODE_REMINDERS: dict[TemporalMode, str] = {
    TemporalMode.REFLECTION: (
        "[REFLECTION MODE: This is a past date. Use past tense and focus on analysis.]"
    ),
    TemporalMode.ACTIVE: (
        "[ACTIVE MODE: This is today. Use present tense and action-oriented language.]"
    ),
    TemporalMode.PLANNING: (
        "[PLANNING MODE: This is a future date. Use future tense and tentative language.]"
    ),
}


def parse_target_date(raw: str) -> date:
    """
    Parse the value of a `Target Date:` marker.

    An ISO date anywhere in the value wins; otherwise the text before any
    parenthesised note is tried as an ISO datetime and then against
    _DATE_FORMATS. Raises ValueError when nothing matches.
    """
    iso = _ISO_DATE_RE.search(raw)
    if iso:
        return date.fromisoformat(iso.group(1))

    head = raw.split("(", 1)[0].strip()
    if not head:
        raise ValueError(f"empty target date: {raw!r}")
    try:
        return datetime.fromisoformat(head).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(head, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised target date: {raw!r}")


def classify_temporal_mode(context: str, today: Optional[date] = None) -> TemporalMode:
    """
    Classify a session context into a TemporalMode. Never raises.

    - "Is Future Date: true" → PLANNING, without looking at the target date
    - Target Date before today → REFLECTION, after today → PLANNING
    - equal dates, no markers, or an unparseable date → ACTIVE
    """
    today = today or date.today()

    future = _FUTURE_RE.search(context or "")
    if future and future.group(1).lower() == "true":
        return TemporalMode.PLANNING

    target = _TARGET_RE.search(context or "")
    if target:
        raw = target.group(1).strip()
        try:
            target_date = parse_target_date(raw)
        except ValueError as e:
            log.warning("temporal.target_date_unparseable", raw=raw[:80], error=str(e))
        else:
            if target_date < today:
                return TemporalMode.REFLECTION
            if target_date > today:
                return TemporalMode.PLANNING

    return TemporalMode.ACTIVE


def mode_instruction(mode: TemporalMode) -> str:
    """The system-instruction block injected for a mode."""
    return _MODE_INSTRUCTIONS[mode]


def mode_reminder(mode: TemporalMode) -> str:
    """The one-line reminder appended to every outgoing message."""
    return _MODE_REMINDERS[mode]
