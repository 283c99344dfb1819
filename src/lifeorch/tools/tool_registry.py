"""
tools/tool_registry.py — Tool Registry

Ordered catalog of the tool declarations offered to the remote model.
Names are unique; once frozen the catalog cannot change, so every session
started from it sees the same set.

Usage:
    registry = build_default_registry()      # the nine lifeorch tools, frozen

    schema = registry.get_schema("add_task")
    names = registry.list_names()
    llm_tools = registry.to_llm_schemas()    # → list[brain.types.ToolSchema]
"""

from __future__ import annotations

from typing import Optional

from lifeorch.brain.types import ToolSchema as BrainToolSchema
from lifeorch.exceptions import ToolRegistrationError
from lifeorch.observability.logger import get_logger
from lifeorch.tools.types import ToolDeclaration

log = get_logger(__name__)


class ToolRegistry:
    """Maps tool names to their declarations, preserving registration order."""

    def __init__(self):
        self._schemas: dict[str, ToolDeclaration] = {}
        self._frozen = False

    def register_tool(self, declaration: ToolDeclaration) -> None:
        if self._frozen:
            raise ToolRegistrationError(
                f"Registry is frozen; cannot register '{declaration.name}'"
            )
        if declaration.name in self._schemas:
            raise ToolRegistrationError(f"Tool '{declaration.name}' is already registered")
        self._schemas[declaration.name] = declaration
        log.debug("tool.registered", tool=declaration.name, mutates=declaration.mutates)

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_schema(self, name: str) -> Optional[ToolDeclaration]:
        """Return the declaration for a tool, or None if not found."""
        return self._schemas.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._schemas

    def list_schemas(self) -> list[ToolDeclaration]:
        return list(self._schemas.values())

    def list_names(self) -> list[str]:
        return list(self._schemas.keys())

    def to_llm_schemas(self) -> list[BrainToolSchema]:
        return [s.to_llm_schema() for s in self._schemas.values()]

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._schemas.keys())} frozen={self._frozen}>"


def build_default_registry() -> ToolRegistry:
    """Return a frozen registry holding the nine lifeorch tool declarations."""
    from lifeorch.tools.declarations import DEFAULT_DECLARATIONS

    registry = ToolRegistry()
    for declaration in DEFAULT_DECLARATIONS:
        registry.register_tool(declaration)
    return registry.freeze()
