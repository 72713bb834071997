"""Tests for the command registry and the default tool commands."""

from __future__ import annotations

import httpx
import pytest

from toolbridge.commands import CommandRegistry, register_default_commands
from toolbridge.config.schema import Config
from toolbridge.errors import ConfigurationError, UnknownCommandError
from toolbridge.installer import ToolInstaller
from toolbridge.location import ToolLocation
from toolbridge.session.session_manager import ToolSessionManager


class TestCommandRegistry:
    @pytest.mark.asyncio
    async def test_invoke_sync_action(self):
        registry = CommandRegistry()
        registry.bind("answer", lambda: 42)
        assert await registry.invoke("answer") == 42

    @pytest.mark.asyncio
    async def test_invoke_async_action(self):
        registry = CommandRegistry()

        async def action():
            return "done"

        registry.bind("go", action, "Do it")
        assert await registry.invoke("go") == "done"
        assert registry.describe("go") == "Do it"

    @pytest.mark.asyncio
    async def test_unknown_command(self):
        with pytest.raises(UnknownCommandError) as exc_info:
            await CommandRegistry().invoke("missing")
        assert "missing" in str(exc_info.value)

    def test_bind_replaces_and_unbind_removes(self):
        registry = CommandRegistry()
        registry.bind("a", lambda: 1)
        registry.bind("a", lambda: 2)
        registry.bind("b", lambda: 3)
        assert registry.names() == ["a", "b"]

        registry.unbind("a")
        registry.unbind("a")
        assert "a" not in registry
        assert "b" in registry


class TestDefaultCommands:
    @pytest.fixture
    def registry(self, manager, location, work_dir):
        config = Config()
        installer = ToolInstaller(location)
        return register_default_commands(CommandRegistry(), manager, installer, config, work_dir)

    def test_names(self, registry):
        assert registry.names() == [
            "build",
            "init",
            "install",
            "repl-clear",
            "repl-restart",
            "repl-start",
            "repl-stop",
            "run",
        ]

    @pytest.mark.asyncio
    async def test_repl_lifecycle_commands(self, registry, manager):
        session = await registry.invoke("repl-start")
        assert manager.get_session("repl") is session

        restarted = await registry.invoke("repl-restart")
        assert restarted.pid != session.pid

        await registry.invoke("repl-stop")
        assert not manager.is_live("repl")

    @pytest.mark.asyncio
    async def test_build_command(self, registry, manager, work_dir):
        result = await registry.invoke("build")
        assert result.cwd == str(work_dir)
        await manager.wait_one_shots()
        assert (work_dir / "invoked.txt").read_text(encoding="utf-8") == "build"

    @pytest.mark.asyncio
    async def test_install_without_source_url(self, registry):
        with pytest.raises(ConfigurationError):
            await registry.invoke("install")

    @pytest.mark.asyncio
    async def test_install_uses_configured_url(self, tmp_path, work_dir):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=b"jar")

        location = ToolLocation(directory=tmp_path / "bin", artifact_name="tool.jar")
        installer = ToolInstaller(location, transport=httpx.MockTransport(handler))
        manager = ToolSessionManager(location)
        config = Config()
        config.tool.source_url = "https://releases.example.org/tool.jar"
        registry = register_default_commands(
            CommandRegistry(), manager, installer, config, work_dir
        )

        result = await registry.invoke("install")

        assert result.fetched
        assert requested == ["https://releases.example.org/tool.jar"]
        assert (tmp_path / "bin" / "tool.jar").read_bytes() == b"jar"
