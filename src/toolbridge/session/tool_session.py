"""Session and invocation records."""

from __future__ import annotations

import asyncio
import contextlib
import shlex
import time
from dataclasses import dataclass, field
from pathlib import Path

from toolbridge.session.sink import DisplaySink


@dataclass
class InvocationRequest:
    """A one-shot, non-interactive invocation of the tool.

    Attributes:
        work_dir: Directory the tool runs in.
        subcommand: "init", "build", "run" or arbitrary text; split like a
            shell would to form the argument list.
    """

    work_dir: Path
    subcommand: str

    @property
    def args(self) -> list[str]:
        return shlex.split(self.subcommand)


@dataclass
class ToolSession:
    """A live REPL subprocess bound to a name.

    Attributes:
        name: Session name (one live session per name).
        process: The REPL subprocess.
        work_dir: Directory the REPL was started in.
        sink: Where output is displayed.
        started_at: Unix timestamp of the spawn.
    """

    name: str
    process: asyncio.subprocess.Process
    work_dir: Path
    sink: DisplaySink
    started_at: float = field(default_factory=time.time)
    pump: asyncio.Task[None] | None = field(default=None, repr=False)
    _stopped: bool = field(default=False, repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def live(self) -> bool:
        """True until the session is stopped or the process exits."""
        return not self._stopped and self.process.returncode is None

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    def mark_stopped(self) -> None:
        self._stopped = True

    async def wait_pump(self, timeout: float) -> bool:
        """Wait up to timeout seconds for all output to be relayed."""
        if self.pump is None or self.pump.done():
            return True
        done, _ = await asyncio.wait({self.pump}, timeout=timeout)
        return bool(done)

    async def cancel_pump(self) -> None:
        """Stop relaying output; anything not yet displayed is dropped."""
        if self.pump is None or self.pump.done():
            return
        self.pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.pump

    def __repr__(self) -> str:
        state = "live" if self.live else f"exited={self.returncode}"
        return f"<ToolSession {self.name!r} pid={self.pid} {state}>"
