"""Command-line interface for toolbridge."""

from __future__ import annotations

import argparse
import asyncio
import shlex
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from toolbridge import __version__
from toolbridge.commands import CommandRegistry, register_default_commands
from toolbridge.config import Config, load_config
from toolbridge.errors import ConfigurationError, ToolBridgeError
from toolbridge.installer import ToolInstaller
from toolbridge.location import ToolLocation
from toolbridge.logging import get_logger, setup_logging, verbosity_from_flags
from toolbridge.session.session_manager import ToolSessionManager
from toolbridge.session.sink import ConsoleSink

log = get_logger("cli")

console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="toolbridge",
        description="Install and drive a compiler toolchain shipped as a runnable archive",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "-C", "--cwd",
        type=Path,
        default=None,
        help="Project directory the tool runs in (default: current directory)",
    )
    parser.add_argument(
        "--tool-dir",
        type=Path,
        help="Directory holding the tool artifact (overrides tool.directory)",
    )

    subparsers = parser.add_subparsers(dest="mode", help="Operation")

    install_parser = subparsers.add_parser(
        "install",
        help="Download the tool if it is missing",
    )
    install_parser.add_argument(
        "--url",
        help="Release URL (overrides tool.source_url)",
    )
    install_parser.add_argument(
        "--dir",
        type=Path,
        dest="install_dir",
        help="Install into this directory (default: the tool directory)",
    )

    subparsers.add_parser("init", help="Create a new project in the directory")
    subparsers.add_parser("build", help="Build the project")
    subparsers.add_parser("run", help="Run the project")

    exec_parser = subparsers.add_parser(
        "exec",
        help="Run the tool with an arbitrary subcommand",
    )
    exec_parser.add_argument(
        "subcommand",
        nargs=argparse.REMAINDER,
        help="Subcommand and arguments passed to the tool",
    )

    repl_parser = subparsers.add_parser(
        "repl",
        help="Start an interactive REPL session",
    )
    repl_parser.add_argument(
        "--name",
        help="Session name (default: session.default_name)",
    )

    return parser


def _apply_verbosity(config: Config, verbose: int) -> None:
    level = verbosity_from_flags(verbose)
    if level is not None:
        config.logging.verbose = level


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.mode is None:
        parser.print_help()
        return 1

    work_dir: Path = (parsed.cwd or Path.cwd()).resolve()
    config = load_config(project_root=work_dir)
    _apply_verbosity(config, parsed.verbose)
    setup_logging(config.logging)

    log.debug("Running %s in %s", parsed.mode, work_dir)

    location = ToolLocation.from_config(config.tool)
    if parsed.tool_dir:
        location.set_directory(parsed.tool_dir)

    try:
        return asyncio.run(_dispatch(parsed, config, location, work_dir))
    except ToolBridgeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except KeyboardInterrupt:
        return 130


async def _dispatch(
    parsed: argparse.Namespace,
    config: Config,
    location: ToolLocation,
    work_dir: Path,
) -> int:
    installer = ToolInstaller(location, timeout=config.tool.fetch_timeout)
    manager = ToolSessionManager.from_config(
        config,
        location,
        sink_factory=lambda name: ConsoleSink(Console()),
    )

    try:
        if parsed.mode == "install":
            return await _install(installer, config, parsed.url, parsed.install_dir)
        if parsed.mode in ("init", "build", "run"):
            return await _one_shot(manager, work_dir, parsed.mode)
        if parsed.mode == "exec":
            if not parsed.subcommand:
                raise ConfigurationError("exec needs a subcommand")
            return await _one_shot(manager, work_dir, shlex.join(parsed.subcommand))
        if parsed.mode == "repl":
            return await _repl(manager, installer, config, work_dir, parsed.name)
    finally:
        await manager.shutdown()

    return 1


async def _install(
    installer: ToolInstaller,
    config: Config,
    url: str | None,
    install_dir: Path | None = None,
) -> int:
    source_url = url or config.tool.source_url
    if not source_url:
        raise ConfigurationError(
            "No source URL configured (pass --url, set tool.source_url or TOOLBRIDGE_SOURCE_URL)"
        )

    location = installer.location
    target = install_dir.expanduser() if install_dir else location.directory
    if target is None:
        raise ConfigurationError("No tool directory configured")

    result = await installer.ensure_installed(target, location.artifact_name, source_url)
    if result.fetched:
        console.print(f"[green]Installed[/green] {result.path} ({result.size} bytes)")
    else:
        console.print(f"[dim]Already present:[/dim] {result.path}")
    return 0


async def _one_shot(manager: ToolSessionManager, work_dir: Path, subcommand: str) -> int:
    result = await manager.invoke_one_shot(manager.location.artifact_path, work_dir, subcommand)
    console.print(f"[dim]$ {escape(result.command)}[/dim]")
    exit_codes = await manager.wait_one_shots()
    return next((code for code in exit_codes if code != 0), 0)


async def _repl(
    manager: ToolSessionManager,
    installer: ToolInstaller,
    config: Config,
    work_dir: Path,
    name: str | None,
) -> int:
    from toolbridge.interactive.repl import InteractiveRepl

    registry = register_default_commands(
        CommandRegistry(), manager, installer, config, work_dir
    )
    history = config.session.history_file
    repl = InteractiveRepl(
        manager,
        registry,
        session_name=name or config.session.default_name,
        work_dir=work_dir,
        history_file=Path(history).expanduser() if history else None,
    )
    await repl.run()
    return 0
