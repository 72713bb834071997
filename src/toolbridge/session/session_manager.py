"""REPL session lifecycle and one-shot invocations of the tool.

The tool artifact is never executed directly; it is run through a host
runtime as `<runtime> <runtime_args> <artifact> <args...>`, which for the
default configuration is `java -jar tool.jar repl`.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import TYPE_CHECKING

from toolbridge.errors import ArtifactNotFoundError, NoActiveSessionError, SpawnError
from toolbridge.logging import TRACE, VERBOSE, get_logger
from toolbridge.session.ansi import AnsiFilter
from toolbridge.session.sink import BufferSink, DisplaySink
from toolbridge.session.tool_session import InvocationRequest, ToolSession
from toolbridge.terminal.result import LaunchResult
from toolbridge.terminal.subprocess_launcher import (
    SubprocessLauncher,
    force_kill,
    format_command,
)

if TYPE_CHECKING:
    from toolbridge.config.schema import Config
    from toolbridge.location import ToolLocation
    from toolbridge.terminal.protocol import ProcessLauncher

    SinkFactory = Callable[[str], DisplaySink]

log = get_logger("session")

_READ_SIZE = 4096


class ToolSessionManager:
    """Manages named REPL sessions and one-shot invocations.

    Responsibilities:
    - Start, stop and restart REPL sessions, at most one live per name
    - Relay session output through the ANSI filter to a DisplaySink
    - Write lines to a session's standard input
    - Launch one-shot invocations (init/build/run/free text) and reap them

    start/stop/restart are serialized per name with an asyncio.Lock.
    send_line only waits for the lock when a lifecycle operation is in
    flight, so a line sent during a restart lands on the new process.
    A line written just before a restart is read by the old process:
    restart closes its stdin and gives it restart_grace seconds to finish
    before the kill.
    """

    def __init__(
        self,
        location: ToolLocation,
        *,
        runtime: str = "java",
        runtime_args: list[str] | None = None,
        repl_args: list[str] | None = None,
        launcher: ProcessLauncher | None = None,
        sink_factory: SinkFactory | None = None,
        env: dict[str, str] | None = None,
        restart_grace: float = 1.0,
    ) -> None:
        """Initialize the session manager.

        Args:
            location: Where the artifact lives; read on every start/invoke.
            runtime: Host interpreter that runs the artifact.
            runtime_args: Arguments placed before the artifact path.
            repl_args: Arguments that put the tool in REPL mode.
            launcher: Process launcher; defaults to SubprocessLauncher.
            sink_factory: Builds the DisplaySink for a session name;
                defaults to BufferSink.
            env: Additional environment variables for every child.
            restart_grace: Seconds a restarted REPL may take to consume
                pending input and exit before it is killed.
        """
        self._location = location
        self._runtime = runtime
        self._runtime_args = ["-jar"] if runtime_args is None else list(runtime_args)
        self._repl_args = ["repl"] if repl_args is None else list(repl_args)
        self._launcher: ProcessLauncher = launcher or SubprocessLauncher()
        self._sink_factory: SinkFactory = sink_factory or (lambda name: BufferSink())
        self._env = env
        self._restart_grace = restart_grace

        self._sessions: dict[str, ToolSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        # Sinks outlive sessions so output of a restarted REPL stays together
        self._sinks: dict[str, DisplaySink] = {}
        self._one_shots: set[asyncio.Task[int]] = set()

    @classmethod
    def from_config(
        cls,
        config: Config,
        location: ToolLocation,
        **kwargs: object,
    ) -> ToolSessionManager:
        return cls(
            location,
            runtime=config.tool.runtime,
            runtime_args=config.tool.runtime_args,
            repl_args=config.tool.repl_args,
            restart_grace=config.session.restart_grace,
            **kwargs,  # type: ignore[arg-type]
        )

    @property
    def location(self) -> ToolLocation:
        return self._location

    def build_argv(self, artifact_path: str | Path, args: list[str]) -> list[str]:
        return [self._runtime, *self._runtime_args, str(artifact_path), *args]

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _locked(self, name: str) -> AsyncIterator[None]:
        """Hold the per-name lock; it is dropped once unused and sessionless."""
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        self._lock_users[name] = self._lock_users.get(name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[name] -= 1
            if not self._lock_users[name]:
                del self._lock_users[name]
                if name not in self._sessions:
                    del self._locks[name]

    def get_session(self, name: str) -> ToolSession | None:
        """Return the live session for name, or None."""
        session = self._sessions.get(name)
        if session is not None and session.live:
            return session
        return None

    def is_live(self, name: str) -> bool:
        return self.get_session(name) is not None

    def list_sessions(self) -> list[ToolSession]:
        return [s for s in self._sessions.values() if s.live]

    def get_sink(self, name: str) -> DisplaySink:
        """Return the display sink for name, creating it on first use."""
        sink = self._sinks.get(name)
        if sink is None:
            sink = self._sinks[name] = self._sink_factory(name)
        return sink

    def clear_output(self, name: str) -> None:
        sink = self._sinks.get(name)
        if sink is not None:
            sink.clear()

    async def start_session(self, name: str, work_dir: str | Path) -> ToolSession:
        """Start the REPL for name, or return the one already live.

        Raises:
            ArtifactNotFoundError: The artifact is missing.
            SpawnError: The process could not be created.
        """
        async with self._locked(name):
            return await self._start_locked(name, Path(work_dir))

    async def stop_session(self, name: str) -> None:
        """Kill the REPL for name. A no-op when there is none."""
        async with self._locked(name):
            await self._stop_locked(name)

    async def restart_session(self, name: str, work_dir: str | Path) -> ToolSession:
        """Stop and start the REPL for name as one operation."""
        async with self._locked(name):
            await self._stop_locked(name, grace=self._restart_grace)
            return await self._start_locked(name, Path(work_dir))

    async def shutdown(self) -> None:
        """Stop every session."""
        for name in list(self._sessions):
            await self.stop_session(name)

    async def _start_locked(self, name: str, work_dir: Path) -> ToolSession:
        existing = self._sessions.get(name)
        if existing is not None:
            if existing.live:
                log.debug("Session %s already live (pid=%d)", name, existing.pid)
                return existing
            # Exited on its own; drop the stale record before respawning
            await self._stop_locked(name)

        artifact = self._location.artifact_path
        if not artifact.exists():
            raise ArtifactNotFoundError(path=str(artifact))

        argv = self.build_argv(artifact, self._repl_args)
        process = await self._launcher.spawn_piped(argv, str(work_dir), self._env)

        session = ToolSession(
            name=name,
            process=process,
            work_dir=work_dir,
            sink=self.get_sink(name),
        )
        session.pump = asyncio.create_task(
            self._pump_output(session), name=f"toolbridge-output-{name}"
        )
        self._sessions[name] = session
        log.info("Started session %s (pid=%d) in %s", name, process.pid, work_dir)
        return session

    async def _stop_locked(self, name: str, grace: float = 0.0) -> None:
        """Drop the record for name and kill its process.

        With a grace period the process first sees EOF on stdin and may
        read what was already written to it. A process that already exited
        gets the same period for its remaining output to be relayed.
        """
        session = self._sessions.pop(name, None)
        if session is None:
            return

        session.mark_stopped()
        stdin = session.process.stdin
        if session.process.returncode is not None:
            grace = max(grace, self._restart_grace)
        if grace > 0:
            if stdin is not None:
                stdin.close()
            if not await session.wait_pump(grace):
                log.log(VERBOSE, "Session %s did not finish within %.1fs", name, grace)
        await force_kill(session.process)
        await session.cancel_pump()
        if stdin is not None:
            stdin.close()
        log.info("Stopped session %s (pid=%d)", name, session.pid)

    async def _pump_output(self, session: ToolSession) -> None:
        """Relay stdout (stderr merged) to the sink until EOF."""
        stdout = session.process.stdout
        if stdout is None:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        ansi = AnsiFilter()
        sink = session.sink

        while True:
            chunk = await stdout.read(_READ_SIZE)
            if not chunk:
                break
            log.log(TRACE, "Session %s produced %d bytes", session.name, len(chunk))
            text = ansi.feed(decoder.decode(chunk))
            if text:
                sink.append(text)
                sink.scroll_to_end()

        tail = ansi.feed(decoder.decode(b"", final=True))
        tail.append_text(ansi.flush())
        if tail:
            sink.append(tail)
            sink.scroll_to_end()

        returncode = await session.process.wait()
        log.info("Session %s exited with code %s", session.name, returncode)

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    async def send_line(self, name: str, text: str) -> None:
        """Write text plus a newline to the session's standard input.

        Does not wait for the REPL to process the line.

        Raises:
            NoActiveSessionError: No live session named name.
        """
        lock = self._locks.get(name)
        if lock is not None and lock.locked():
            # A start/stop/restart is in flight; land after it
            async with self._locked(name):
                pass

        session = self.get_session(name)
        if session is None or session.process.stdin is None:
            raise NoActiveSessionError(name=name)

        stdin = session.process.stdin
        stdin.write(f"{text}\n".encode())
        try:
            await stdin.drain()
        except ConnectionError as e:
            raise NoActiveSessionError(name=name) from e
        log.log(TRACE, "Sent to session %s: %r", name, text)

    async def send_region(self, name: str, text: str) -> None:
        """Send each line of a multi-line text, in order."""
        for line in text.splitlines():
            await self.send_line(name, line)

    # -------------------------------------------------------------------------
    # One-shot invocations
    # -------------------------------------------------------------------------

    async def invoke_one_shot(
        self,
        artifact_path: str | Path,
        work_dir: str | Path,
        subcommand: str,
    ) -> LaunchResult:
        """Launch the tool with subcommand in work_dir and return immediately.

        The child writes to our own stdout/stderr. Its exit status is not
        reported here; see wait_one_shots().

        Raises:
            ArtifactNotFoundError: artifact_path does not exist (nothing spawned).
            SpawnError: The subcommand has unbalanced quotes or the process
                could not be created.
        """
        artifact = Path(artifact_path)
        if not artifact.exists():
            raise ArtifactNotFoundError(path=str(artifact))

        request = InvocationRequest(work_dir=Path(work_dir), subcommand=subcommand)
        try:
            args = request.args
        except ValueError as e:
            raise SpawnError(
                command=format_command(self.build_argv(artifact, [])) + f" {subcommand}",
                reason=f"Cannot parse subcommand {subcommand!r}: {e}",
            ) from e
        argv = self.build_argv(artifact, args)
        process = await self._launcher.spawn_detached(argv, str(request.work_dir), self._env)

        command = format_command(argv)
        task = asyncio.create_task(self._reap(process, command))
        self._one_shots.add(task)
        task.add_done_callback(self._one_shots.discard)

        log.info("Launched %s (pid=%d) in %s", command, process.pid, request.work_dir)
        return LaunchResult(command=command, pid=process.pid, cwd=str(request.work_dir))

    async def invoke(self, request: InvocationRequest) -> LaunchResult:
        """Launch a one-shot invocation of the artifact at the ToolLocation."""
        return await self.invoke_one_shot(
            self._location.artifact_path, request.work_dir, request.subcommand
        )

    async def init(self, work_dir: str | Path) -> LaunchResult:
        return await self.invoke(InvocationRequest(Path(work_dir), "init"))

    async def build(self, work_dir: str | Path) -> LaunchResult:
        return await self.invoke(InvocationRequest(Path(work_dir), "build"))

    async def run(self, work_dir: str | Path) -> LaunchResult:
        return await self.invoke(InvocationRequest(Path(work_dir), "run"))

    async def wait_one_shots(self) -> list[int]:
        """Wait for every outstanding one-shot and return their exit codes."""
        if not self._one_shots:
            return []
        return list(await asyncio.gather(*self._one_shots))

    async def _reap(self, process: asyncio.subprocess.Process, command: str) -> int:
        returncode = await process.wait()
        log.log(VERBOSE, "%s (pid=%d) exited with code %d", command, process.pid, returncode)
        return returncode
