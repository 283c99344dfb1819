"""
tools/ — lifeorch Tool Catalog

Public API:
    from lifeorch.tools import ToolRegistry, ToolDeclaration, build_default_registry
"""

from lifeorch.tools.tool_registry import ToolRegistry, build_default_registry
from lifeorch.tools.types import ToolDeclaration

__all__ = ["ToolRegistry", "ToolDeclaration", "build_default_registry"]
