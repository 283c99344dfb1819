"""
stores/types.py — Ledger / Inventory / Memory Data Models

The shapes the executors read and write. The closed Literal sets here are
the single source for the enums declared in tools/declarations.py.
"""

from __future__ import annotations

from typing import Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

PersonCategory = Literal["Family", "Friend", "Network"]
StatusLevel = Literal["Stable", "Needs Attention", "Critical", "Overdue"]
TaskType = Literal["fixed", "flexible"]
TaskPriority = Literal["high", "medium", "low"]
TaskCategory = Literal["Career", "Life", "Health", "Family"]
RecurrenceFrequency = Literal["daily", "weekly", "monthly"]
MemoryKind = Literal["preference", "decision", "fact"]


def literal_values(literal) -> list[str]:
    return list(get_args(literal))


# ─────────────────────────────────────────────────────────────────────────────
# Relationship ledger
# ─────────────────────────────────────────────────────────────────────────────


class Person(BaseModel):
    name: str
    relation: str = "New Contact"
    category: PersonCategory = "Network"
    priority: int = 3
    notes: str = ""
    last_contact: str = ""          # ISO date
    status: StatusLevel = "Stable"
    image: Optional[str] = None


RelationshipLedger = dict[str, Person]


class UpdateRelationshipArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    person_name: str
    notes_update: str
    status_level: StatusLevel
    category: Optional[PersonCategory] = None
    relation: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Task inventory
# ─────────────────────────────────────────────────────────────────────────────


class RecurrenceRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    frequency: RecurrenceFrequency
    week_days: Optional[list[int]] = Field(default=None, alias="weekDays")   # 0 = Sunday
    day_of_month: Optional[int] = Field(default=None, alias="dayOfMonth")


class Task(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    gcal_id: Optional[str] = None
    title: str
    type: TaskType
    time: Optional[str] = None
    date: Optional[str] = None      # YYYY-MM-DD
    duration: str
    priority: TaskPriority
    category: Optional[TaskCategory] = None
    recurrence: Optional[RecurrenceRule] = None


class LifeInventory(BaseModel):
    fixed: list[Task] = Field(default_factory=list)
    flexible: list[Task] = Field(default_factory=list)

    def all_tasks(self) -> list[Task]:
        return [*self.fixed, *self.flexible]


# ─────────────────────────────────────────────────────────────────────────────
# Memory + proposals
# ─────────────────────────────────────────────────────────────────────────────


class MemoryEntry(BaseModel):
    id: str
    content: str
    date: str
    kind: MemoryKind


class OrchestrationProposal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    optimized_timeline: str
    reasoning: str
    schedule: list[Task] = Field(default_factory=list)
