"""Interactive front end for a tool REPL session."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from toolbridge.errors import ToolBridgeError

if TYPE_CHECKING:
    from toolbridge.commands import CommandRegistry
    from toolbridge.session.session_manager import ToolSessionManager


class InteractiveRepl:
    """Reads lines from the terminal and forwards them to a REPL session.

    Lines starting with "/" are commands: /help, /quit, or any name bound
    in the CommandRegistry (/build, /repl-restart, ...).
    """

    def __init__(
        self,
        manager: ToolSessionManager,
        registry: CommandRegistry,
        session_name: str,
        work_dir: Path,
        history_file: Path | None = None,
        console: Console | None = None,
    ) -> None:
        self.manager = manager
        self.registry = registry
        self.session_name = session_name
        self.work_dir = work_dir
        self.console = console or Console()
        self.history_file = history_file
        self._running = False

    def _create_prompt_session(self) -> PromptSession[str]:
        history = FileHistory(str(self.history_file)) if self.history_file else None
        return PromptSession(history=history, auto_suggest=AutoSuggestFromHistory())

    async def run(self) -> None:
        """Start the session and forward input until /quit or EOF."""
        await self.manager.start_session(self.session_name, self.work_dir)
        prompt_session = self._create_prompt_session()
        self._running = True

        self.console.print(f"[bold]toolbridge[/bold] - REPL session [cyan]{self.session_name}[/cyan]")
        self.console.print("Type [bold]/help[/bold] for commands, [bold]/quit[/bold] to exit.\n")

        with patch_stdout(raw=True):
            while self._running:
                try:
                    line = await prompt_session.prompt_async("")
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    break

                await self.handle_line(line)

        self._running = False
        await self.manager.stop_session(self.session_name)

    async def handle_line(self, line: str) -> None:
        """Dispatch one input line; errors are printed, not raised."""
        try:
            if line.startswith("/"):
                await self._handle_command(line[1:].strip())
            else:
                await self.manager.send_line(self.session_name, line)
        except ToolBridgeError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")

    async def _handle_command(self, name: str) -> None:
        if name in ("quit", "exit"):
            self.stop()
            return
        if name in ("help", ""):
            self._print_help()
            return

        result = await self.registry.invoke(name)
        if result is not None:
            self.console.print(f"[dim]{escape(repr(result))}[/dim]")

    def _print_help(self) -> None:
        table = Table(title="Available Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")
        table.add_row("/help", "Show this help message")
        for name in self.registry.names():
            table.add_row(f"/{name}", self.registry.describe(name))
        table.add_row("/quit", "Stop the REPL and exit")
        self.console.print(table)

    def stop(self) -> None:
        self._running = False
