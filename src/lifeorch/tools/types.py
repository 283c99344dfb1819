"""
tools/types.py — Tool Catalog Data Models
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from lifeorch.brain.types import ToolSchema as BrainToolSchema


class ToolDeclaration(BaseModel):
    """
    One callable operation exposed to the remote model.

    Frozen: the catalog is defined once and handed to every new session.
    `parameters` is a JSON-schema style object (None for no-argument tools).
    """
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Optional[dict[str, Any]] = None
    mutates: bool = False           # True for tools that change host state

    @property
    def required(self) -> list[str]:
        return list((self.parameters or {}).get("required", []))

    def to_llm_schema(self) -> BrainToolSchema:
        """Return the declaration in the form the brain layer expects."""
        return BrainToolSchema(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )
