"""toolbridge: installer and REPL/process bridge for a jar-packaged compiler toolchain."""

__version__ = "0.1.0"

# Public API
from toolbridge.commands import CommandRegistry, register_default_commands
from toolbridge.config import Config, get_config, load_config
from toolbridge.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    FetchError,
    NoActiveSessionError,
    SpawnError,
    ToolBridgeError,
    UnknownCommandError,
    WriteError,
)
from toolbridge.installer import InstallResult, ToolInstaller
from toolbridge.location import ToolLocation
from toolbridge.session import (
    AnsiFilter,
    BufferSink,
    ConsoleSink,
    DisplaySink,
    InvocationRequest,
    ToolSession,
    ToolSessionManager,
)
from toolbridge.terminal import LaunchResult

__all__ = [
    # Installer
    "InstallResult",
    "ToolInstaller",
    "ToolLocation",
    # Sessions
    "AnsiFilter",
    "BufferSink",
    "ConsoleSink",
    "DisplaySink",
    "InvocationRequest",
    "LaunchResult",
    "ToolSession",
    "ToolSessionManager",
    # Commands
    "CommandRegistry",
    "register_default_commands",
    # Config
    "Config",
    "load_config",
    "get_config",
    # Errors
    "ArtifactNotFoundError",
    "ConfigurationError",
    "FetchError",
    "NoActiveSessionError",
    "SpawnError",
    "ToolBridgeError",
    "UnknownCommandError",
    "WriteError",
]
