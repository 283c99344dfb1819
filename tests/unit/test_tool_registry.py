"""
tests/unit/test_tool_registry.py — Tool Registry + Declaration Tests
"""

from __future__ import annotations

import pytest

from lifeorch.brain.types import ToolSchema
from lifeorch.exceptions import ToolRegistrationError
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
from lifeorch.tools import ToolDeclaration, ToolRegistry, build_default_registry

EXPECTED_ORDER = [
    "get_relationship_status",
    "get_life_context",
    "propose_orchestration",
    "update_relationship_status",
    "add_task",
    "delete_task",
    "delete_relationship_status",
    "save_memory",
    "move_tasks",
]


@pytest.fixture
def registry() -> ToolRegistry:
    return build_default_registry()


class TestRegistry:
    def test_nine_tools_in_order(self, registry):
        assert registry.list_names() == EXPECTED_ORDER
        assert len(registry) == 9

    def test_frozen(self, registry):
        assert registry.frozen
        with pytest.raises(ToolRegistrationError):
            registry.register_tool(ToolDeclaration(name="extra", description="x"))

    def test_duplicate_rejected(self):
        reg = ToolRegistry()
        reg.register_tool(ToolDeclaration(name="a", description="first"))
        with pytest.raises(ToolRegistrationError):
            reg.register_tool(ToolDeclaration(name="a", description="second"))

    def test_lookup(self, registry):
        assert registry.get_schema("nope") is None
        assert registry.is_registered("add_task")
        assert "move_tasks" in registry
        assert "nope" not in registry

    def test_to_llm_schemas(self, registry):
        schemas = registry.to_llm_schemas()
        assert all(isinstance(s, ToolSchema) for s in schemas)
        assert [s.name for s in schemas] == EXPECTED_ORDER
        assert schemas[0].parameters is None


class TestDeclarations:
    def test_required_fields(self, registry):
        assert registry.get_schema("get_relationship_status").required == []
        assert registry.get_schema("get_life_context").required == []
        assert registry.get_schema("propose_orchestration").required == [
            "optimized_timeline", "reasoning", "schedule",
        ]
        assert registry.get_schema("update_relationship_status").required == [
            "person_name", "notes_update", "status_level",
        ]
        assert registry.get_schema("add_task").required == [
            "title", "type", "duration", "priority", "category",
        ]
        assert registry.get_schema("delete_task").required == ["title"]
        assert registry.get_schema("delete_relationship_status").required == ["person_name"]
        assert registry.get_schema("save_memory").required == ["content", "type"]
        assert registry.get_schema("move_tasks").required == ["task_identifiers", "target_date"]

    def test_schedule_items_require_task_fields(self, registry):
        params = registry.get_schema("propose_orchestration").parameters
        items = params["properties"]["schedule"]["items"]
        assert items["required"] == ["title", "type", "duration", "priority", "category"]

    def test_move_tasks_identifiers_are_string_array(self, registry):
        prop = registry.get_schema("move_tasks").parameters["properties"]["task_identifiers"]
        assert prop == {"type": "array", "items": {"type": "string"}}

    def test_mutating_flags(self, registry):
        reads = {d.name for d in registry.list_schemas() if not d.mutates}
        assert reads == {"get_relationship_status", "get_life_context"}

    def test_enums_match_domain_literals(self, registry):
        add_props = registry.get_schema("add_task").parameters["properties"]
        assert add_props["type"]["enum"] == literal_values(TaskType)
        assert add_props["priority"]["enum"] == literal_values(TaskPriority)
        assert add_props["category"]["enum"] == literal_values(TaskCategory)
        assert add_props["recurrence"]["properties"]["frequency"]["enum"] == literal_values(
            RecurrenceFrequency
        )

        upd_props = registry.get_schema("update_relationship_status").parameters["properties"]
        assert upd_props["status_level"]["enum"] == literal_values(StatusLevel)
        assert upd_props["category"]["enum"] == literal_values(PersonCategory)

        mem_props = registry.get_schema("save_memory").parameters["properties"]
        assert mem_props["type"]["enum"] == literal_values(MemoryKind)
        assert mem_props["type"]["enum"] == ["preference", "decision", "fact"]
