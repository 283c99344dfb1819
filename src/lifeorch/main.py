"""
main.py — lifeorch Entry Point

Usage:
    lifeorch                                # REPL for today, opens with the day's briefing
    lifeorch --date 2024-05-01              # plan / reflect on another day
    lifeorch --no-stream                    # request/response mode
    lifeorch --log-level DEBUG
    lifeorch --config path/to/config.yaml

REPL commands:
    /date YYYY-MM-DD   restart the session for another day and brief it
    /approve           accept the pending orchestration proposal
    /status            show the active session
    /quit              exit
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, datetime

from dotenv import load_dotenv


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lifeorch",
        description="lifeorch — temporal-mode life orchestrator",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: $LIFEORCH_CONFIG or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override log level from config",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Target date as YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--no-stream",
        action="store_true",
        default=False,
        help="Wait for complete replies instead of streaming them",
    )
    return parser.parse_args(argv)


def bootstrap(args: argparse.Namespace):
    """
    Load config and set up logging. Returns (settings, log).

    Exits with code 1 if config.yaml has invalid values. A missing API key is
    only reported; the session fails at send time instead.
    """
    from pydantic import ValidationError

    from lifeorch.config.settings import ConfigError, load_settings
    from lifeorch.observability.logger import get_logger, setup_logging

    try:
        settings = load_settings(args.config)
    except ValidationError as exc:
        problems = "\n".join(
            f"  • {'.'.join(str(p) for p in e['loc']) or '?'}: {e['msg']}"
            for e in exc.errors()
        )
        print(
            f"\nConfig validation failed:\n\n{problems}\n\n"
            f"    Fix config/config.yaml or your .env file and restart.\n",
            file=sys.stderr,
        )
        sys.exit(1)
    except OSError as exc:
        print(f"\nFailed to load config: {type(exc).__name__}: {exc}\n", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        level=args.log_level or settings.log_level,
        log_dir=settings.log_dir,
        json_format=settings.logging.json_format,
        console_output=settings.logging.console_output,
        max_bytes=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )
    log = get_logger("lifeorch.main")

    try:
        settings.validate_all()
    except ConfigError as exc:
        log.warning("lifeorch.config_problems", detail=str(exc).strip())
        print(str(exc), file=sys.stderr)

    return settings, log


class Repl:
    """Interactive loop over one Orchestrator and an in-memory LifeState."""

    def __init__(self, orchestrator, state, executors, settings, stream: bool = True, clock=datetime.now):
        from rich.console import Console

        self.console = Console()
        self.orc = orchestrator
        self.state = state
        self.executors = executors
        self.settings = settings
        self.stream = stream
        self.clock = clock

    async def start_session_for(self, target: date) -> None:
        """Restart the session for `target` and stream the day's briefing."""
        from lifeorch.agent.context_builder import briefing_prompt, build_session_context
        from lifeorch.exceptions import LifeOrchError, LLMError

        user_mode = self.settings.session.user_mode
        self.state.view_date = target
        context = build_session_context(
            target_date=target,
            now=self.clock(),
            user_mode=user_mode,
            timezone=self.settings.session.timezone,
            memories=self.state.memories,
            orchestration_status=self.state.orchestration_status(target),
        )
        try:
            session = self.orc.start_new_session(context)
        except (LifeOrchError, LLMError) as e:
            self._print_error(e)
            return
        self.console.print(
            f"[dim]Session {session.id} · {target.isoformat()} · "
            f"mode [bold]{session.mode.value}[/][/]"
        )
        await self.send(briefing_prompt(session.mode, target, user_mode))

    async def run(self) -> None:
        import aioconsole

        while True:
            try:
                user_input = (await aioconsole.ainput("you › ")).strip()
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[dim]Goodbye.[/]")
                return
            if not user_input:
                continue
            if user_input.startswith("/"):
                if not await self.handle_command(user_input):
                    return
                continue
            await self.send(user_input)

    async def handle_command(self, line: str) -> bool:
        """Returns False when the REPL should exit."""
        command, _, arg = line.partition(" ")
        if command in ("/quit", "/exit"):
            self.console.print("[dim]Goodbye.[/]")
            return False
        if command == "/date":
            try:
                target = date.fromisoformat(arg.strip())
            except ValueError:
                self.console.print("[red]Usage: /date YYYY-MM-DD[/]")
                return True
            await self.start_session_for(target)
            return True
        if command == "/approve":
            proposal = self.state.approve_pending_proposal(self.clock())
            if proposal is None:
                self.console.print("[yellow]No pending proposal.[/]")
            else:
                self.console.print(f"[green]Approved plan with {len(proposal.schedule)} task(s).[/]")
            return True
        if command == "/status":
            session = self.orc.session
            if session is None:
                self.console.print("[yellow]No active session.[/]")
            else:
                for key, value in session.status_summary().items():
                    self.console.print(f"  [dim]{key}:[/] {value}")
            return True
        self.console.print(f"[yellow]Unknown command {command}. Try /date, /approve, /status or /quit.[/]")
        return True

    async def send(self, text: str) -> None:
        from rich.live import Live
        from rich.markdown import Markdown
        from rich.panel import Panel

        from lifeorch.exceptions import LifeOrchError, LLMError

        try:
            if self.stream:
                with Live(console=self.console, refresh_per_second=8) as live:
                    def on_update(partial: str, thought: str) -> None:
                        live.update(Panel(Markdown(partial), border_style="cyan", padding=(0, 2)))

                    result = await self.orc.send_stream(text, None, self.executors, on_update)
                    live.update(Panel(Markdown(result.text or "_(no reply)_"), border_style="cyan", padding=(0, 2)))
            else:
                with self.console.status("[dim]thinking…[/]"):
                    result = await self.orc.send(text, None, self.executors)
                self.console.print(Panel(Markdown(result.text or "_(no reply)_"), border_style="cyan", padding=(0, 2)))
        except (LifeOrchError, LLMError) as e:
            self._print_error(e)
            return

        if self.state.pending_proposal is not None:
            self.console.print("[yellow]A new orchestration proposal is pending. /approve to accept it.[/]")

    def _print_error(self, exc: Exception) -> None:
        from rich.panel import Panel

        self.console.print(Panel(str(exc), title="[red]Error[/]", border_style="red", padding=(0, 1)))


async def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    settings, log = bootstrap(args)

    from lifeorch.agent.orchestrator import Orchestrator
    from lifeorch.stores.local import LifeState, LocalExecutors

    target = args.date or date.today()
    state = LifeState(view_date=target)
    executors = LocalExecutors(state)
    orchestrator = Orchestrator.from_settings(settings)

    log.info(
        "lifeorch.starting",
        model=settings.llm.model,
        target_date=target.isoformat(),
        streaming=not args.no_stream,
    )

    repl = Repl(orchestrator, state, executors, settings, stream=not args.no_stream)
    try:
        await repl.start_session_for(target)
        await repl.run()
    finally:
        orchestrator.end_session()
    return 0


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
