"""
stores/local.py — In-Memory Life State + Reference Executors

LifeState holds everything the nine tools read and write for one user:
the Kinship Ledger, the task inventory, long-term memories, the pending
orchestration proposal and the date currently being viewed.

LocalExecutors implements ToolExecutors over a LifeState. Status strings are
what the model sees after a mutating call, so they say what happened in
plain words.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from lifeorch.agent.context_builder import locale_date
from lifeorch.agent.executor import ToolExecutors
from lifeorch.exceptions import AmbiguousTaskError, ToolExecutionError
from lifeorch.observability.logger import get_logger
from lifeorch.stores.types import (
    LifeInventory,
    MemoryEntry,
    OrchestrationProposal,
    Person,
    RelationshipLedger,
    Task,
    UpdateRelationshipArgs,
)

log = get_logger(__name__)

MAX_MEMORIES = 100


def _normalize(s: str) -> str:
    return s.lower().strip()


def tasks_for_date(inventory: LifeInventory, target: str) -> LifeInventory:
    """
    Tasks that fall on `target` (YYYY-MM-DD): exact date matches plus
    undated recurring tasks whose rule hits that day.
    """
    day = date.fromisoformat(target)
    weekday = (day.weekday() + 1) % 7      # 0 = Sunday

    def matches(t: Task) -> bool:
        if t.date == target:
            return True
        if t.recurrence is None or t.date:
            return False
        rule = t.recurrence
        if rule.frequency == "daily":
            return True
        if rule.frequency == "weekly":
            return weekday in (rule.week_days or [])
        return rule.day_of_month == day.day

    return LifeInventory(
        fixed=[t for t in inventory.fixed if matches(t)],
        flexible=[t for t in inventory.flexible if matches(t)],
    )


@dataclass
class LifeState:
    ledger: RelationshipLedger = field(default_factory=dict)
    inventory: LifeInventory = field(default_factory=LifeInventory)
    memories: list[MemoryEntry] = field(default_factory=list)
    view_date: date = field(default_factory=date.today)
    pending_proposal: Optional[OrchestrationProposal] = None
    pending_contacts: list[Person] = field(default_factory=list)
    # YYYY-MM-DD → when the plan for that day was approved
    approved_orchestrations: dict[str, datetime] = field(default_factory=dict)

    @property
    def view_key(self) -> str:
        return self.view_date.isoformat()

    def task_ids(self) -> set[str]:
        return {t.id for t in self.inventory.all_tasks()}

    def orchestration_status(self, day: Optional[date] = None) -> Optional[str]:
        """Context line for an approved plan on `day`, or None if there is none."""
        approved_at = self.approved_orchestrations.get((day or self.view_date).isoformat())
        if approved_at is None:
            return None
        stamp = f"{locale_date(approved_at.date())}, {approved_at.strftime('%I:%M %p')}"
        return f"ACTIVE since {stamp} - Day already orchestrated"

    def approve_pending_proposal(self, now: datetime) -> Optional[OrchestrationProposal]:
        """Mark the pending proposal as the plan for the viewed day."""
        proposal = self.pending_proposal
        if proposal is None:
            return None
        self.approved_orchestrations[self.view_key] = now
        self.pending_proposal = None
        log.info("store.proposal_approved", date=self.view_key, tasks=len(proposal.schedule))
        return proposal

    def invalidate_orchestration(self, day: Optional[str]) -> None:
        if day and self.approved_orchestrations.pop(day, None) is not None:
            log.info("store.orchestration_invalidated", date=day)


class LocalExecutors(ToolExecutors):
    """Reference tool executors over an in-memory LifeState."""

    def __init__(self, state: LifeState, clock: Callable[[], datetime] = datetime.now):
        self.state = state
        self._clock = clock

    def _view_relative_to_today(self) -> int:
        """-1 past, 0 today, 1 future."""
        today = self._clock().date()
        view = self.state.view_date
        return (view > today) - (view < today)

    # ── Read tools ────────────────────────────────────────────────────────────

    async def get_relationship_status(self) -> RelationshipLedger:
        return self.state.ledger

    async def get_life_context(self, date: Optional[str] = None) -> LifeInventory:
        return tasks_for_date(self.state.inventory, date or self.state.view_key)

    # ── Orchestration ─────────────────────────────────────────────────────────

    async def propose_orchestration(self, proposal: OrchestrationProposal) -> str:
        if self._view_relative_to_today() < 0:
            return (
                "Cannot orchestrate past dates. Past dates are for reflection only. "
                "Please navigate to today or a future date to create new orchestrations."
            )
        replaced = self.state.pending_proposal is not None
        self.state.pending_proposal = proposal
        log.info("store.proposal_pending", tasks=len(proposal.schedule), replaced=replaced)
        if replaced:
            return "New proposal generated. Previous proposal has been replaced."
        return "Proposal generated."

    # ── Ledger ────────────────────────────────────────────────────────────────

    async def update_relationship_status(self, args: UpdateRelationshipArgs) -> str:
        ledger = self.state.ledger
        target = _normalize(args.person_name)
        key = next(
            (k for k, p in ledger.items() if _normalize(p.name) == target or _normalize(k) == target),
            None,
        )
        contact_date = self.state.view_key

        if key is None:
            self.state.pending_contacts.append(Person(
                name=args.person_name,
                relation=args.relation or "New Contact",
                category=args.category or "Network",
                notes=args.notes_update,
                status=args.status_level,
                last_contact=contact_date,
            ))
            return f"Proposal to add {args.person_name} prepared."

        ledger[key] = ledger[key].model_copy(update={
            "notes": args.notes_update,
            "status": args.status_level,
            "last_contact": contact_date,
        })
        return f"Updated {args.person_name}'s ledger."

    async def delete_relationship_status(self, name: str) -> str:
        target = _normalize(name)
        key = next((k for k, p in self.state.ledger.items() if target in _normalize(p.name)), None)
        if key is None:
            return "No contact found."
        del self.state.ledger[key]
        return f"Removed {name}."

    # ── Inventory ─────────────────────────────────────────────────────────────

    async def add_task(self, task: Task) -> str:
        relative = self._view_relative_to_today()
        if relative < 0 and task.type == "fixed" and task.time:
            log.warning("store.past_fixed_task_blocked", title=task.title, date=self.state.view_key)
            return (
                "Cannot schedule fixed tasks with specific times on past dates. "
                "Past dates are for reflection only. For historical records, use "
                "flexible tasks without times, or navigate to today/future to schedule new tasks."
            )

        task_date = None if task.recurrence else (task.date or self.state.view_key)
        new_task = task.model_copy(update={"id": self._new_task_id(), "date": task_date})
        bucket = self.state.inventory.fixed if new_task.type == "fixed" else self.state.inventory.flexible
        bucket.append(new_task)
        self.state.invalidate_orchestration(task_date)

        if relative < 0:
            return f'Added "{new_task.title}" to {task_date} as a historical record (reflection mode).'
        if relative > 0:
            return f'Added "{new_task.title}" to future date {task_date} (planning mode).'
        if task_date is None:
            return f'Added recurring task "{new_task.title}".'
        return f"Added \"{new_task.title}\" to today's schedule ({task_date})."

    def _new_task_id(self) -> str:
        existing = self.state.task_ids()
        while True:
            candidate = uuid.uuid4().hex[:9]
            if candidate not in existing:
                return candidate

    async def delete_task(self, title: str) -> str:
        target = _normalize(title)
        inv = self.state.inventory
        exact = [t for t in inv.all_tasks() if _normalize(t.title) == target]

        if len(exact) > 1:
            raise AmbiguousTaskError(
                title,
                [f"{t.title} ({t.type}, {t.time or 'no time'})" for t in exact],
            )

        if not exact:
            similar = [
                t.title for t in inv.all_tasks()
                if target in _normalize(t.title) or _normalize(t.title) in target
            ]
            if similar:
                listing = ", ".join(f'"{s}"' for s in similar)
                return f"No exact match found. Did you mean: {listing}? Please use the exact task name."
            return f'No task found with name "{title}". Please check spelling and use the exact task name.'

        match = exact[0]
        inv.fixed = [t for t in inv.fixed if t.id != match.id]
        inv.flexible = [t for t in inv.flexible if t.id != match.id]
        self.state.invalidate_orchestration(match.date)
        return f'Removed task "{match.title}".'

    async def move_tasks(self, task_identifiers: list[str], target_date: str) -> str:
        try:
            date.fromisoformat(target_date)
        except ValueError as e:
            raise ToolExecutionError(f"target_date must be YYYY-MM-DD, got {target_date!r}") from e

        targets = [_normalize(t) for t in task_identifiers]
        moved: list[str] = []
        source_dates: set[str] = set()

        def relocate(tasks: list[Task]) -> list[Task]:
            out = []
            for t in tasks:
                title = _normalize(t.title)
                if any(title == target or target in title for target in targets):
                    moved.append(t.title)
                    if t.date:
                        source_dates.add(t.date)
                    t = t.model_copy(update={"date": target_date})
                out.append(t)
            return out

        inv = self.state.inventory
        inv.fixed = relocate(inv.fixed)
        inv.flexible = relocate(inv.flexible)

        if not moved:
            return "No tasks found to move."
        for day in source_dates | {target_date}:
            self.state.invalidate_orchestration(day)
        return f"Moved {len(moved)} tasks to {target_date}: {', '.join(moved)}."

    # ── Memory ────────────────────────────────────────────────────────────────

    async def save_memory(self, content: str, kind: str) -> str:
        entry = MemoryEntry(
            id=uuid.uuid4().hex[:9],
            content=content,
            kind=kind,
            date=self._clock().date().isoformat(),
        )
        self.state.memories.append(entry)
        if len(self.state.memories) > MAX_MEMORIES:
            del self.state.memories[:-MAX_MEMORIES]
        return f'Saved to memory: "{content}"'
