"""Configuration schema dataclasses for toolbridge.

All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ARTIFACT_NAME = "tool.jar"
DEFAULT_RUNTIME = "java"


@dataclass
class ToolConfig:
    """Where the artifact lives and how it is launched.

    Example config.yaml:
        tool:
          directory: ~/.toolbridge/bin
          artifact_name: tool.jar
          source_url: https://example.org/releases/tool.jar
          runtime: java
          runtime_args: ["-jar"]
    """

    directory: str | None = None  # Default: ~/.toolbridge/bin
    artifact_name: str = DEFAULT_ARTIFACT_NAME
    source_url: str | None = None  # Release location fetched by `install`
    runtime: str = DEFAULT_RUNTIME
    runtime_args: list[str] = field(default_factory=lambda: ["-jar"])
    repl_args: list[str] = field(default_factory=lambda: ["repl"])
    fetch_timeout: float = 60.0  # Seconds


@dataclass
class SessionConfig:
    """REPL session defaults."""

    default_name: str = "repl"
    history_file: str | None = None  # prompt_toolkit history for `toolbridge repl`
    restart_grace: float = 1.0  # Seconds the old REPL gets to consume input on restart


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    tool: ToolConfig = field(default_factory=ToolConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept as-is
    extra: dict[str, Any] = field(default_factory=dict)
