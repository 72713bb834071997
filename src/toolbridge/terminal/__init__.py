"""Subprocess support for running the tool artifact.

Provides the ProcessLauncher protocol and its asyncio implementation.
"""

from toolbridge.terminal.protocol import ProcessLauncher
from toolbridge.terminal.result import LaunchResult
from toolbridge.terminal.subprocess_launcher import (
    SubprocessLauncher,
    force_kill,
    format_command,
)

__all__ = [
    "LaunchResult",
    "ProcessLauncher",
    "SubprocessLauncher",
    "force_kill",
    "format_command",
]
