"""
tests/unit/test_cli.py — REPL Unit Tests

Session start with the daily briefing, /date and /status handling, and
error rendering, against a scripted LLM client and a silent console.

Run with:
    pytest tests/unit/test_cli.py -v
"""

from __future__ import annotations

from datetime import date
from io import StringIO

import pytest
from rich.console import Console

from fakes import FIXED_NOW, FakeChatSession, FakeLLMClient, call, text_response, tool_response
from lifeorch.agent import Orchestrator, TemporalMode
from lifeorch.agent.context_builder import briefing_prompt
from lifeorch.brain.types import LLMResponse
from lifeorch.config import Settings
from lifeorch.main import Repl
from lifeorch.stores.local import LifeState, LocalExecutors


def make_repl(client: FakeLLMClient, stream: bool = False, user_mode: str = "live",
              orchestrator: Orchestrator | None = None) -> Repl:
    settings = Settings(session={"timezone": "UTC", "user_mode": user_mode})
    orc = orchestrator or Orchestrator.from_settings(
        settings, llm_client=client, clock=lambda: FIXED_NOW,
    )
    state = LifeState(view_date=FIXED_NOW.date())
    repl = Repl(orc, state, LocalExecutors(state, clock=lambda: FIXED_NOW), settings,
                stream=stream, clock=lambda: FIXED_NOW)
    repl.console = Console(file=StringIO(), highlight=False)   # silent console
    return repl


def output(repl: Repl) -> str:
    return repl.console.file.getvalue()


# ── Briefing ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestStartSession:
    async def test_briefing_sent_for_today(self):
        chat = FakeChatSession(script=[
            tool_response(call("get_relationship_status", "c1"), call("get_life_context", "c2")),
            text_response("Good morning. Mom needs a call."),
        ])
        repl = make_repl(FakeLLMClient(chats=[chat]))

        await repl.start_session_for(date(2024, 3, 15))

        assert repl.orc.mode == TemporalMode.ACTIVE
        first_text = chat.sent[0][-1].text
        assert first_text.startswith(briefing_prompt(TemporalMode.ACTIVE, date(2024, 3, 15)))
        assert "Good morning. Mom needs a call." in output(repl)

    async def test_briefing_streams_when_enabled(self):
        chat = FakeChatSession(stream_script=[
            [LLMResponse(text="Looking ahead, "), LLMResponse(text="Saturday is open.")],
        ])
        repl = make_repl(FakeLLMClient(chats=[chat]), stream=True)

        await repl.start_session_for(date(2024, 3, 16))

        assert repl.orc.mode == TemporalMode.PLANNING
        assert chat.stream_sent[0][-1].text.startswith("PLANNING MODE: Looking ahead to 3/16/2024.")
        assert "Saturday is open." in output(repl)

    async def test_missing_key_reported_without_traceback(self):
        settings = Settings(session={"timezone": "UTC"})
        orc = Orchestrator.from_settings(settings, clock=lambda: FIXED_NOW)
        repl = make_repl(FakeLLMClient(), orchestrator=orc)

        await repl.start_session_for(date(2024, 3, 15))

        assert orc.session is not None
        assert "GEMINI_API_KEY is not set" in output(repl)

    async def test_unexpected_start_error_propagates(self):
        client = FakeLLMClient()
        client.start_error = RuntimeError("should not be caught")
        repl = make_repl(client)
        with pytest.raises(RuntimeError):
            await repl.start_session_for(date(2024, 3, 15))


# ── Commands ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestCommands:
    async def test_date_restarts_and_briefs(self):
        chats = [FakeChatSession(script=[text_response("today")]),
                 FakeChatSession(script=[text_response("yesterday")])]
        repl = make_repl(FakeLLMClient(chats=list(chats)))
        await repl.start_session_for(date(2024, 3, 15))
        first = repl.orc.session

        assert await repl.handle_command("/date 2024-03-14") is True

        assert first.is_cancelled()
        assert repl.orc.mode == TemporalMode.REFLECTION
        assert repl.state.view_date == date(2024, 3, 14)
        assert chats[1].sent[0][-1].text.startswith("REFLECTION MODE: Looking back at 3/14/2024.")

    async def test_date_usage(self):
        repl = make_repl(FakeLLMClient())
        assert await repl.handle_command("/date tomorrow") is True
        assert "Usage: /date YYYY-MM-DD" in output(repl)
        assert repl.orc.session is None

    async def test_status_without_session(self):
        repl = make_repl(FakeLLMClient())
        assert await repl.handle_command("/status") is True
        assert "No active session." in output(repl)

    async def test_quit(self):
        assert await make_repl(FakeLLMClient()).handle_command("/quit") is False
