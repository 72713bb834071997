"""Named zero-argument commands.

A front end binds its keys, menu items or slash commands to these names
instead of talking to the installer and session manager directly.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from toolbridge.errors import ConfigurationError, UnknownCommandError
from toolbridge.logging import get_logger

if TYPE_CHECKING:
    from toolbridge.config.schema import Config
    from toolbridge.installer import ToolInstaller
    from toolbridge.session.session_manager import ToolSessionManager

log = get_logger("commands")

Action = Callable[[], Any] | Callable[[], Awaitable[Any]]


class CommandRegistry:
    """Maps command names to zero-argument actions (sync or async)."""

    def __init__(self) -> None:
        self._actions: dict[str, Action] = {}
        self._descriptions: dict[str, str] = {}

    def bind(self, name: str, action: Action, description: str = "") -> None:
        """Bind name to action, replacing any previous binding."""
        self._actions[name] = action
        self._descriptions[name] = description

    def unbind(self, name: str) -> None:
        self._actions.pop(name, None)
        self._descriptions.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._actions)

    def describe(self, name: str) -> str:
        return self._descriptions.get(name, "")

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    async def invoke(self, name: str) -> Any:
        """Run the action bound to name and return its result.

        Raises:
            UnknownCommandError: Nothing is bound to name.
        """
        action = self._actions.get(name)
        if action is None:
            raise UnknownCommandError(name=name)

        log.debug("Invoking command %s", name)
        result = action()
        if inspect.isawaitable(result):
            result = await result
        return result


def register_default_commands(
    registry: CommandRegistry,
    manager: ToolSessionManager,
    installer: ToolInstaller,
    config: Config,
    work_dir: str | Path,
) -> CommandRegistry:
    """Bind the standard tool commands, all operating in work_dir."""
    work_dir = Path(work_dir)
    session_name = config.session.default_name

    async def install() -> Any:
        source_url = config.tool.source_url
        if not source_url:
            raise ConfigurationError(
                "No source URL configured (set tool.source_url or TOOLBRIDGE_SOURCE_URL)"
            )
        location = installer.location
        if location.directory is None:
            raise ConfigurationError("No tool directory configured (set tool.directory)")
        return await installer.ensure_installed(
            location.directory, location.artifact_name, source_url
        )

    registry.bind("install", install, "Download the tool if it is missing")
    registry.bind(
        "repl-start",
        lambda: manager.start_session(session_name, work_dir),
        "Start the REPL",
    )
    registry.bind("repl-stop", lambda: manager.stop_session(session_name), "Kill the REPL")
    registry.bind(
        "repl-restart",
        lambda: manager.restart_session(session_name, work_dir),
        "Restart the REPL",
    )
    registry.bind("repl-clear", lambda: manager.clear_output(session_name), "Clear REPL output")
    registry.bind("init", lambda: manager.init(work_dir), "Create a new project")
    registry.bind("build", lambda: manager.build(work_dir), "Build the project")
    registry.bind("run", lambda: manager.run(work_dir), "Run the project")
    return registry
