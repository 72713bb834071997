"""Subprocess-based launcher for the tool artifact."""

from __future__ import annotations

import asyncio
import os
import platform
import shlex

from toolbridge.errors import SpawnError
from toolbridge.logging import get_logger

log = get_logger("terminal")

_WINDOWS = platform.system() == "Windows"
_CREATE_NEW_PROCESS_GROUP = 0x00000200 if _WINDOWS else 0


def format_command(argv: list[str]) -> str:
    """Render an argv list for messages and LaunchResult.command."""
    return " ".join(shlex.quote(a) for a in argv)


async def force_kill(process: asyncio.subprocess.Process) -> None:
    """Kill a process without waiting for graceful shutdown, then reap it."""
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass  # Process already gone
    await process.wait()


class SubprocessLauncher:
    """Spawn tool processes using asyncio subprocess.

    OS errors are reported as SpawnError, using the same wording as a shell
    would for missing or non-executable commands.
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        """Initialize the launcher.

        Args:
            env: Extra environment variables for every child.
        """
        self._env = env or {}

    def _build_env(self, env: dict[str, str] | None) -> dict[str, str]:
        process_env = os.environ.copy()
        process_env.update(self._env)
        if env:
            process_env.update(env)
        return process_env

    async def spawn_piped(
        self,
        argv: list[str],
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> asyncio.subprocess.Process:
        process = await self._spawn(
            argv,
            cwd,
            env,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,  # Merge stderr into stdout
        )
        log.debug("Spawned piped pid=%d: %s", process.pid, format_command(argv))
        return process

    async def spawn_detached(
        self,
        argv: list[str],
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> asyncio.subprocess.Process:
        # Output goes straight to our own stdout/stderr
        process = await self._spawn(
            argv,
            cwd,
            env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=None,
            stderr=None,
            creationflags=_CREATE_NEW_PROCESS_GROUP,
        )
        log.debug("Spawned detached pid=%d: %s", process.pid, format_command(argv))
        return process

    async def _spawn(
        self,
        argv: list[str],
        cwd: str,
        env: dict[str, str] | None,
        **kwargs: object,
    ) -> asyncio.subprocess.Process:
        full_command = format_command(argv)
        try:
            return await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                env=self._build_env(env),
                **kwargs,  # type: ignore[arg-type]
            )
        except FileNotFoundError as e:
            # Either the runtime or the working directory is missing
            missing = e.filename if e.filename else argv[0]
            if missing == cwd:
                raise SpawnError(full_command, f"Working directory not found: {cwd}") from e
            raise SpawnError(full_command, f"Command not found: {argv[0]}") from e
        except PermissionError as e:
            raise SpawnError(full_command, f"Permission denied: {argv[0]}") from e
        except OSError as e:
            raise SpawnError(full_command, f"OS error: {e}") from e
