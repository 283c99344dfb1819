"""
tools/declarations.py — The Nine lifeorch Tool Declarations

Parameter schemas are JSON-schema style dicts. Every enum is taken from the
Literal types in stores/types.py, so the declared schema and what the
executors accept cannot drift apart.
"""

from __future__ import annotations

from lifeorch.stores.types import (
    MemoryKind,
    PersonCategory,
    RecurrenceFrequency,
    StatusLevel,
    TaskCategory,
    TaskPriority,
    TaskType,
    literal_values,
)
from lifeorch.tools.types import ToolDeclaration


def _enum(literal, description: str = "") -> dict:
    field = {"type": "string", "enum": literal_values(literal)}
    if description:
        field["description"] = description
    return field


_RECURRENCE = {
    "type": "object",
    "properties": {
        "frequency": _enum(RecurrenceFrequency),
        "weekDays": {
            "type": "array",
            "description": "Weekdays for weekly rules, 0 = Sunday.",
            "items": {"type": "number"},
        },
        "dayOfMonth": {"type": "number", "description": "Day of month (1-31) for monthly rules."},
    },
}

_TASK_REQUIRED = ["title", "type", "duration", "priority", "category"]


GET_RELATIONSHIP_STATUS = ToolDeclaration(
    name="get_relationship_status",
    description="Retrieves the current status of family, friends, and network connections.",
)

GET_LIFE_CONTEXT = ToolDeclaration(
    name="get_life_context",
    description=(
        "Gets the user's current schedule, tasks, and goals across career "
        "and personal life."
    ),
    parameters={
        "type": "object",
        "properties": {
            "date": {"type": "string", "description": "The date to check (YYYY-MM-DD)."},
        },
    },
)

PROPOSE_ORCHESTRATION = ToolDeclaration(
    name="propose_orchestration",
    description="Submits a restructured day plan.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {
            "optimized_timeline": {
                "type": "string",
                "description": "The full hourly breakdown text.",
            },
            "reasoning": {
                "type": "string",
                "description": "Why these specific shifts were made.",
            },
            "schedule": {
                "type": "array",
                "description": "The complete list of tasks.",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "gcal_id": {"type": "string"},
                        "title": {"type": "string"},
                        "type": _enum(TaskType),
                        "time": {"type": "string"},
                        "duration": {"type": "string"},
                        "priority": _enum(TaskPriority),
                        "category": _enum(TaskCategory),
                        "recurrence": _RECURRENCE,
                    },
                    "required": _TASK_REQUIRED,
                },
            },
        },
        "required": ["optimized_timeline", "reasoning", "schedule"],
    },
)

UPDATE_RELATIONSHIP_STATUS = ToolDeclaration(
    name="update_relationship_status",
    description="Updates a person's status in the ledger.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {
            "person_name": {"type": "string"},
            "notes_update": {"type": "string"},
            "status_level": _enum(StatusLevel),
            "category": _enum(PersonCategory),
            "relation": {"type": "string"},
        },
        "required": ["person_name", "notes_update", "status_level"],
    },
)

ADD_TASK = ToolDeclaration(
    name="add_task",
    description="Adds a new task or event to the Life Inventory.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "type": _enum(TaskType),
            "duration": {"type": "string"},
            "priority": _enum(TaskPriority),
            "category": _enum(TaskCategory),
            "time": {"type": "string"},
            "date": {
                "type": "string",
                "description": "Date in YYYY-MM-DD format. Defaults to today if omitted.",
            },
            "recurrence": _RECURRENCE,
        },
        "required": _TASK_REQUIRED,
    },
)

DELETE_TASK = ToolDeclaration(
    name="delete_task",
    description="Deletes a task from the inventory by title.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {"title": {"type": "string"}},
        "required": ["title"],
    },
)

DELETE_RELATIONSHIP_STATUS = ToolDeclaration(
    name="delete_relationship_status",
    description="Removes a person from the Relationship Ledger.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {"person_name": {"type": "string"}},
        "required": ["person_name"],
    },
)

SAVE_MEMORY = ToolDeclaration(
    name="save_memory",
    description="Persists a key fact, preference, or decision.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {
            "content": {"type": "string"},
            "type": _enum(MemoryKind),
        },
        "required": ["content", "type"],
    },
)

MOVE_TASKS = ToolDeclaration(
    name="move_tasks",
    description="Moves specific tasks to a new date.",
    mutates=True,
    parameters={
        "type": "object",
        "properties": {
            "task_identifiers": {"type": "array", "items": {"type": "string"}},
            "target_date": {"type": "string", "description": "YYYY-MM-DD"},
        },
        "required": ["task_identifiers", "target_date"],
    },
)


DEFAULT_DECLARATIONS: tuple[ToolDeclaration, ...] = (
    GET_RELATIONSHIP_STATUS,
    GET_LIFE_CONTEXT,
    PROPOSE_ORCHESTRATION,
    UPDATE_RELATIONSHIP_STATUS,
    ADD_TASK,
    DELETE_TASK,
    DELETE_RELATIONSHIP_STATUS,
    SAVE_MEMORY,
    MOVE_TASKS,
)
