"""
stores/ — Ledger, Inventory and Memory Data

The executors a host wires in live in stores.local:
    from lifeorch.stores.local import LifeState, LocalExecutors
"""

from lifeorch.stores.types import (
    LifeInventory,
    MemoryEntry,
    OrchestrationProposal,
    Person,
    RecurrenceRule,
    RelationshipLedger,
    Task,
    UpdateRelationshipArgs,
)

__all__ = [
    "LifeInventory",
    "MemoryEntry",
    "OrchestrationProposal",
    "Person",
    "RecurrenceRule",
    "RelationshipLedger",
    "Task",
    "UpdateRelationshipArgs",
]
