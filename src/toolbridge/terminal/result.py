"""Launch result dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LaunchResult:
    """Result of launching a one-shot invocation.

    Success means the process was launched, not that it completed.

    Attributes:
        command: The command that was launched (including args).
        pid: Process id of the child.
        cwd: Working directory the child runs in.
    """

    command: str
    pid: int
    cwd: str

    def __repr__(self) -> str:
        return f"<LaunchResult pid={self.pid} {self.command!r}>"
