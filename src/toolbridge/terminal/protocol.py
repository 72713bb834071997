"""Process launcher protocol."""

from __future__ import annotations

import asyncio
from typing import Protocol


class ProcessLauncher(Protocol):
    """Protocol for creating tool subprocesses.

    Implementations:
    - SubprocessLauncher: asyncio subprocesses on the local machine
    - test doubles that record launches without spawning
    """

    async def spawn_piped(
        self,
        argv: list[str],
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> asyncio.subprocess.Process:
        """Spawn with stdin/stdout piped and stderr merged into stdout.

        Raises:
            SpawnError: If the process could not be created.
        """
        ...

    async def spawn_detached(
        self,
        argv: list[str],
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> asyncio.subprocess.Process:
        """Spawn inheriting the caller's stdout/stderr, stdin closed.

        Raises:
            SpawnError: If the process could not be created.
        """
        ...
