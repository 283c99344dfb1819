"""
agent/context_builder.py — Session Context Builder

Renders the plain-text context block handed to SessionManager.start_new_session():

    Session Context:
    Target Date: 1/2/2024 (Format for add_task: 2024-01-02)
    Current System Date: 1/1/2024 (2024-01-01)
    Temporal Mode: PLANNING
    ...
    User Timezone: Europe/Berlin

    == LONG-TERM MEMORY BANK ==
    - [2024-01-01] (preference): Prefers gym in the morning

The temporal classifier reads the Target Date / Is Future Date markers back
out of this text, so the two must stay in step.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lifeorch.agent.temporal import TemporalMode
from lifeorch.stores.types import MemoryEntry

TIME_FORMAT = "%I:%M %p"
DEMO_CLOCK_TIME = "09:00 AM"
_NOT_ORCHESTRATED = "NONE - Day not orchestrated"

_LOCALTIME = Path("/etc/localtime")
_TIMEZONE_FILE = Path("/etc/timezone")

_BRIEFING_OPENERS = {
    TemporalMode.REFLECTION: "REFLECTION MODE: Looking back at",
    TemporalMode.ACTIVE: "ACTIVE MODE: Today is",
    TemporalMode.PLANNING: "PLANNING MODE: Looking ahead to",
}


def locale_date(d: date) -> str:
    """US-style short date without zero padding, e.g. 1/2/2024."""
    return f"{d.month}/{d.day}/{d.year}"


def format_clock_time(now: datetime) -> str:
    return now.strftime(TIME_FORMAT)


def session_clock_time(now: datetime, user_mode: str = "live") -> str:
    """Clock text shown to the model. Demo mode always reads 09:00 AM."""
    if user_mode == "demo":
        return DEMO_CLOCK_TIME
    return format_clock_time(now)


def _is_zone_key(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def local_zone_key() -> Optional[str]:
    """
    IANA name of the machine's zone (e.g. "Europe/Berlin"), looked up from
    $TZ, the /etc/localtime symlink, then /etc/timezone. None if unknown.
    """
    candidates = [os.environ.get("TZ", "").lstrip(":")]
    if _LOCALTIME.is_symlink():
        _, sep, key = str(_LOCALTIME.resolve()).rpartition("zoneinfo/")
        if sep:
            candidates.append(key)
    if _TIMEZONE_FILE.is_file():
        candidates.append(_TIMEZONE_FILE.read_text(encoding="utf-8").strip())
    for name in candidates:
        if name and _is_zone_key(name):
            return name
    return None


def resolve_timezone(configured: Optional[str] = None) -> str:
    """The configured zone, else the local IANA name, else the local abbreviation."""
    if configured:
        return configured
    return local_zone_key() or datetime.now().astimezone().tzname() or "UTC"


def _temporal_label(target: date, today: date) -> str:
    if target < today:
        return "REFLECTION"
    if target > today:
        return "PLANNING"
    return "ACTIVE"


def memory_bank_block(memories: Iterable[MemoryEntry]) -> str:
    lines = [f"- [{m.date}] ({m.kind}): {m.content}" for m in memories]
    if not lines:
        return ""
    return "\n\n== LONG-TERM MEMORY BANK ==\n" + "\n".join(lines)


def build_session_context(
    target_date: date,
    now: datetime,
    user_mode: str = "live",
    timezone: Optional[str] = None,
    memories: Iterable[MemoryEntry] = (),
    orchestration_status: Optional[str] = None,
) -> str:
    """
    Render the full session context for a target date.

    `orchestration_status` describes an approved plan for the date, e.g.
    "ACTIVE since 1/2/2024, 9:00 AM - Day already orchestrated"; None means
    the day has not been orchestrated.
    """
    today = now.date()
    iso_target = target_date.isoformat()

    lines = [
        "Session Context:",
        f"Target Date: {locale_date(target_date)} (Format for add_task: {iso_target})",
        f"Current System Date: {locale_date(today)} ({today.isoformat()})",
        f"Temporal Mode: {_temporal_label(target_date, today)}",
        f"Approved Orchestration: {orchestration_status or _NOT_ORCHESTRATED}",
    ]
    if target_date > today:
        lines.append("Is Future Date: true")
    lines += [
        "",
        'IMPORTANT - When user says "this day", "today", "tonight":',
        f"→ They mean the TARGET DATE: {iso_target}",
        "→ NOT the current system date",
        "",
        f"Current Session Time: {session_clock_time(now, user_mode)}",
        f"User Mode: {user_mode}",
        f"User Timezone: {resolve_timezone(timezone)}",
    ]
    return "\n".join(lines) + memory_bank_block(memories)


def default_session_context(
    now: datetime,
    timezone: Optional[str] = None,
    user_mode: str = "live",
) -> str:
    """Minimal context used when a session is started without one."""
    return "\n".join([
        "Session Context:",
        f"Target Date: {now.date().isoformat()}",
        f"Current Session Time: {session_clock_time(now, user_mode)}",
        "Is Future Date: false",
        f"User Mode: {user_mode}",
        f"User Timezone: {resolve_timezone(timezone)}",
    ])


def briefing_prompt(mode: TemporalMode, target_date: date, user_mode: str = "live") -> str:
    """
    Opening message sent when a session starts for a day: pull the ledger and
    the inventory first, then brief the user, comparing with the previous day.
    """
    yesterday = (target_date - timedelta(days=1)).isoformat()
    prompt = (
        f"{_BRIEFING_OPENERS[mode]} {locale_date(target_date)}. "
        "IMPORTANT: First call get_relationship_status and get_life_context to "
        "retrieve current data, then provide your briefing. "
        f"Compare with {yesterday}."
    )
    if user_mode == "demo":
        prompt += (
            " Explicitly mention that you are assuming the context of 9:00 AM "
            "on this specific date for the simulation."
        )
    return prompt
