"""
tests/unit/test_stores.py — LifeState + LocalExecutors Tests

The reference executors over in-memory state: recurrence matching, the
temporal guards on past dates, ledger updates, task deletion rules,
moving tasks, the memory cap and orchestration approval.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from fakes import FIXED_NOW
from lifeorch.exceptions import AmbiguousTaskError, ToolExecutionError
from lifeorch.stores.local import MAX_MEMORIES, LifeState, LocalExecutors, tasks_for_date
from lifeorch.stores.types import (
    LifeInventory,
    OrchestrationProposal,
    Person,
    RecurrenceRule,
    Task,
    UpdateRelationshipArgs,
)

TODAY = FIXED_NOW.date()             # Friday 2024-03-15


def _task(title: str, type: str = "flexible", **kwargs) -> Task:
    kwargs.setdefault("duration", "1h")
    kwargs.setdefault("priority", "medium")
    return Task(title=title, type=type, **kwargs)


def _executors(view: date = TODAY, **state) -> LocalExecutors:
    return LocalExecutors(LifeState(view_date=view, **state), clock=lambda: FIXED_NOW)


# ─────────────────────────────────────────────────────────────────────────────
# Recurrence
# ─────────────────────────────────────────────────────────────────────────────


class TestTasksForDate:
    def _inventory(self) -> LifeInventory:
        return LifeInventory(
            fixed=[
                _task("Standup", "fixed", time="09:00", date="2024-03-15"),
                _task("Dentist", "fixed", time="14:00", date="2024-03-18"),
            ],
            flexible=[
                _task("Stretch", recurrence=RecurrenceRule(frequency="daily")),
                _task("Call Mom", recurrence=RecurrenceRule(frequency="weekly", week_days=[0, 5])),
                _task("Pay rent", recurrence=RecurrenceRule(frequency="monthly", day_of_month=15)),
                _task("Old recurring", date="2024-03-01",
                      recurrence=RecurrenceRule(frequency="daily")),
            ],
        )

    def test_friday_the_15th(self):
        day = tasks_for_date(self._inventory(), "2024-03-15")
        assert [t.title for t in day.fixed] == ["Standup"]
        assert [t.title for t in day.flexible] == ["Stretch", "Call Mom", "Pay rent"]

    def test_sunday(self):
        day = tasks_for_date(self._inventory(), "2024-03-17")
        assert day.fixed == []
        assert [t.title for t in day.flexible] == ["Stretch", "Call Mom"]

    def test_monday_fixed(self):
        day = tasks_for_date(self._inventory(), "2024-03-18")
        assert [t.title for t in day.fixed] == ["Dentist"]
        assert [t.title for t in day.flexible] == ["Stretch"]

    def test_dated_recurring_matches_only_its_date(self):
        day = tasks_for_date(self._inventory(), "2024-03-01")
        assert "Old recurring" in [t.title for t in day.flexible]


# ─────────────────────────────────────────────────────────────────────────────
# Ledger
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestLedger:
    def _ledger(self):
        return {"mom": Person(name="Mom", relation="Mother", category="Family", status="Needs Attention")}

    async def test_update_existing_case_insensitive(self):
        ex = _executors(ledger=self._ledger())
        msg = await ex.update_relationship_status(UpdateRelationshipArgs(
            person_name="mom", notes_update="Called Sunday", status_level="Stable",
        ))
        assert msg == "Updated mom's ledger."
        mom = ex.state.ledger["mom"]
        assert mom.status == "Stable"
        assert mom.notes == "Called Sunday"
        assert mom.last_contact == "2024-03-15"
        assert mom.relation == "Mother"

    async def test_unknown_person_becomes_pending_contact(self):
        ex = _executors(ledger=self._ledger())
        msg = await ex.update_relationship_status(UpdateRelationshipArgs(
            person_name="Priya", notes_update="Met at conference", status_level="Stable",
            category="Network",
        ))
        assert msg == "Proposal to add Priya prepared."
        assert "priya" not in ex.state.ledger
        (pending,) = ex.state.pending_contacts
        assert pending.name == "Priya"
        assert pending.relation == "New Contact"

    async def test_delete_by_substring(self):
        ex = _executors(ledger=self._ledger())
        assert await ex.delete_relationship_status("mo") == "Removed mo."
        assert ex.state.ledger == {}

    async def test_delete_unknown(self):
        ex = _executors(ledger=self._ledger())
        assert await ex.delete_relationship_status("Dad") == "No contact found."
        assert "mom" in ex.state.ledger

    async def test_get_relationship_status(self):
        ledger = self._ledger()
        ex = _executors(ledger=ledger)
        assert await ex.get_relationship_status() is ledger


# ─────────────────────────────────────────────────────────────────────────────
# Inventory
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestAddTask:
    async def test_today(self):
        ex = _executors()
        msg = await ex.add_task(_task("Gym", category="Health"))
        assert msg == "Added \"Gym\" to today's schedule (2024-03-15)."
        (added,) = ex.state.inventory.flexible
        assert added.date == "2024-03-15"
        assert len(added.id) == 9

    async def test_explicit_date(self):
        ex = _executors()
        await ex.add_task(_task("Flight", "fixed", time="07:00", date="2024-04-01"))
        assert ex.state.inventory.fixed[0].date == "2024-04-01"

    async def test_future_view(self):
        ex = _executors(view=date(2024, 3, 20))
        msg = await ex.add_task(_task("Review"))
        assert msg == 'Added "Review" to future date 2024-03-20 (planning mode).'

    async def test_past_flexible_is_historical(self):
        ex = _executors(view=date(2024, 3, 10))
        msg = await ex.add_task(_task("Walked 10k"))
        assert "historical record" in msg
        assert ex.state.inventory.flexible[0].date == "2024-03-10"

    async def test_past_fixed_with_time_blocked(self):
        ex = _executors(view=date(2024, 3, 10))
        msg = await ex.add_task(_task("Meeting", "fixed", time="10:00"))
        assert msg.startswith("Cannot schedule fixed tasks")
        assert ex.state.inventory.fixed == []

    async def test_recurring_task_is_undated(self):
        ex = _executors()
        msg = await ex.add_task(_task(
            "Yoga", recurrence=RecurrenceRule(frequency="weekly", week_days=[1]),
        ))
        assert msg == 'Added recurring task "Yoga".'
        assert ex.state.inventory.flexible[0].date is None

    async def test_ids_unique(self):
        ex = _executors()
        for i in range(5):
            await ex.add_task(_task(f"T{i}"))
        assert len(ex.state.task_ids()) == 5

    async def test_life_context_defaults_to_view_date(self):
        ex = _executors()
        await ex.add_task(_task("Today thing"))
        await ex.add_task(_task("Later thing", date="2024-03-20"))
        today = await ex.get_life_context()
        later = await ex.get_life_context("2024-03-20")
        assert [t.title for t in today.flexible] == ["Today thing"]
        assert [t.title for t in later.flexible] == ["Later thing"]


@pytest.mark.asyncio
class TestDeleteTask:
    async def test_exact_match_case_insensitive(self):
        ex = _executors(inventory=LifeInventory(flexible=[_task("Gym", id="a")]))
        assert await ex.delete_task("  gym ") == 'Removed task "Gym".'
        assert ex.state.inventory.flexible == []

    async def test_ambiguous(self):
        ex = _executors(inventory=LifeInventory(
            fixed=[_task("Sync", "fixed", id="a", time="10:00")],
            flexible=[_task("Sync", id="b")],
        ))
        with pytest.raises(AmbiguousTaskError) as exc_info:
            await ex.delete_task("sync")
        assert exc_info.value.matches == ["Sync (fixed, 10:00)", "Sync (flexible, no time)"]
        assert "1) Sync (fixed, 10:00)" in str(exc_info.value)
        assert len(ex.state.inventory.all_tasks()) == 2

    async def test_similar_suggestions(self):
        ex = _executors(inventory=LifeInventory(flexible=[_task("Gym session", id="a")]))
        msg = await ex.delete_task("gym")
        assert msg == 'No exact match found. Did you mean: "Gym session"? Please use the exact task name.'
        assert len(ex.state.inventory.flexible) == 1

    async def test_no_match(self):
        ex = _executors()
        msg = await ex.delete_task("Nothing")
        assert msg.startswith('No task found with name "Nothing"')


@pytest.mark.asyncio
class TestMoveTasks:
    async def test_moves_by_substring(self):
        ex = _executors(inventory=LifeInventory(
            flexible=[_task("Read book", id="a", date="2024-03-15"),
                      _task("Gym", id="b", date="2024-03-15")],
        ))
        msg = await ex.move_tasks(["read"], "2024-03-16")
        assert msg == "Moved 1 tasks to 2024-03-16: Read book."
        dates = {t.title: t.date for t in ex.state.inventory.flexible}
        assert dates == {"Read book": "2024-03-16", "Gym": "2024-03-15"}

    async def test_nothing_to_move(self):
        ex = _executors()
        assert await ex.move_tasks(["ghost"], "2024-03-16") == "No tasks found to move."

    async def test_bad_date(self):
        ex = _executors()
        with pytest.raises(ToolExecutionError):
            await ex.move_tasks(["x"], "tomorrow")


# ─────────────────────────────────────────────────────────────────────────────
# Memory
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestSaveMemory:
    async def test_saved(self):
        ex = _executors()
        msg = await ex.save_memory("Prefers mornings for deep work", "preference")
        assert msg == 'Saved to memory: "Prefers mornings for deep work"'
        (entry,) = ex.state.memories
        assert entry.kind == "preference"
        assert entry.date == "2024-03-15"

    async def test_capped_keeping_newest(self):
        ex = _executors()
        for i in range(MAX_MEMORIES + 5):
            await ex.save_memory(f"fact {i}", "fact")
        assert len(ex.state.memories) == MAX_MEMORIES
        assert ex.state.memories[0].content == "fact 5"
        assert ex.state.memories[-1].content == f"fact {MAX_MEMORIES + 4}"


# ─────────────────────────────────────────────────────────────────────────────
# Orchestration
# ─────────────────────────────────────────────────────────────────────────────


def _proposal(title: str = "Deep work") -> OrchestrationProposal:
    return OrchestrationProposal(
        optimized_timeline="09:00 Deep work",
        reasoning="Peak energy",
        schedule=[_task(title, priority="high")],
    )


@pytest.mark.asyncio
class TestOrchestration:
    async def test_proposal_pending(self):
        ex = _executors()
        assert await ex.propose_orchestration(_proposal()) == "Proposal generated."
        assert ex.state.pending_proposal is not None

    async def test_replacing_proposal(self):
        ex = _executors()
        await ex.propose_orchestration(_proposal("A"))
        msg = await ex.propose_orchestration(_proposal("B"))
        assert msg == "New proposal generated. Previous proposal has been replaced."
        assert ex.state.pending_proposal.schedule[0].title == "B"

    async def test_past_date_refused(self):
        ex = _executors(view=date(2024, 3, 1))
        msg = await ex.propose_orchestration(_proposal())
        assert msg.startswith("Cannot orchestrate past dates.")
        assert ex.state.pending_proposal is None

    async def test_approve_and_status_line(self):
        ex = _executors()
        await ex.propose_orchestration(_proposal())
        approved = ex.state.approve_pending_proposal(datetime(2024, 3, 15, 8, 5))
        assert approved is not None
        assert ex.state.pending_proposal is None
        assert ex.state.orchestration_status() == (
            "ACTIVE since 3/15/2024, 08:05 AM - Day already orchestrated"
        )

    async def test_approve_without_proposal(self):
        state = LifeState(view_date=TODAY)
        assert state.approve_pending_proposal(FIXED_NOW) is None
        assert state.orchestration_status() is None

    async def test_adding_task_invalidates_approval(self):
        ex = _executors()
        await ex.propose_orchestration(_proposal())
        ex.state.approve_pending_proposal(FIXED_NOW)
        await ex.add_task(_task("Surprise errand"))
        assert ex.state.orchestration_status() is None
