"""Tests for the subprocess launcher."""

import asyncio
import sys

import pytest

from toolbridge.errors import SpawnError
from toolbridge.terminal.result import LaunchResult
from toolbridge.terminal.subprocess_launcher import SubprocessLauncher, force_kill, format_command


class TestLaunchResult:
    def test_repr(self):
        result = LaunchResult(command="java -jar tool.jar build", pid=1234, cwd="/p")
        assert "pid=1234" in repr(result)
        assert "build" in repr(result)


class TestFormatCommand:
    def test_quotes_arguments_with_spaces(self):
        assert format_command(["java", "-jar", "my tool.jar"]) == "java -jar 'my tool.jar'"


class TestSubprocessLauncher:
    @pytest.fixture
    def launcher(self):
        return SubprocessLauncher(env={"TOOLBRIDGE_TEST": "1"})

    @pytest.mark.asyncio
    async def test_piped_merges_stderr(self, launcher, tmp_path):
        process = await launcher.spawn_piped(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
            cwd=str(tmp_path),
        )
        stdout, _ = await process.communicate()

        assert b"out" in stdout
        assert b"err" in stdout

    @pytest.mark.asyncio
    async def test_env_is_passed(self, launcher, tmp_path):
        process = await launcher.spawn_piped(
            [sys.executable, "-c", "import os; print(os.environ['TOOLBRIDGE_TEST'], os.environ['EXTRA'])"],
            cwd=str(tmp_path),
            env={"EXTRA": "2"},
        )
        stdout, _ = await process.communicate()
        assert stdout.split() == [b"1", b"2"]

    @pytest.mark.asyncio
    async def test_detached_runs_in_cwd(self, launcher, tmp_path):
        process = await launcher.spawn_detached(
            [sys.executable, "-c", "open('marker', 'w').close()"],
            cwd=str(tmp_path),
        )
        assert await process.wait() == 0
        assert (tmp_path / "marker").exists()

    @pytest.mark.asyncio
    async def test_command_not_found(self, launcher, tmp_path):
        with pytest.raises(SpawnError) as exc_info:
            await launcher.spawn_detached(["nonexistent_command_xyz"], cwd=str(tmp_path))
        assert str(exc_info.value) == "Command not found: nonexistent_command_xyz"
        assert exc_info.value.command == "nonexistent_command_xyz"

    @pytest.mark.asyncio
    async def test_force_kill(self, launcher, tmp_path):
        process = await launcher.spawn_piped(
            [sys.executable, "-c", "import time; time.sleep(60)"],
            cwd=str(tmp_path),
        )
        await asyncio.wait_for(force_kill(process), timeout=5)
        assert process.returncode is not None

        # Already reaped: no-op
        await force_kill(process)
