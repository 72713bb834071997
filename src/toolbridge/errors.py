"""Errors raised by the installer, session manager and command registry.

All of them derive from ToolBridgeError so front ends can report any
failure with a single except clause. None of them is retried.
"""

from __future__ import annotations

from dataclasses import dataclass


class ToolBridgeError(Exception):
    """Base class for toolbridge errors."""


@dataclass(eq=False)
class ArtifactNotFoundError(ToolBridgeError):
    """The artifact is missing at the resolved location."""

    path: str | None  # None when no tool directory is known

    def __str__(self) -> str:
        if self.path is None:
            return "Tool location is not set; install the tool or configure tool.directory"
        return f"Artifact not found: {self.path}"


@dataclass(eq=False)
class FetchError(ToolBridgeError):
    """Retrieving the artifact from its remote location failed."""

    url: str
    reason: str
    status_code: int | None = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"Fetching {self.url} failed with HTTP {self.status_code}"
        return f"Fetching {self.url} failed: {self.reason}"


@dataclass(eq=False)
class WriteError(ToolBridgeError):
    """Writing the fetched artifact to disk failed."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Cannot write {self.path}: {self.reason}"


@dataclass(eq=False)
class NoActiveSessionError(ToolBridgeError):
    """A line was sent to a session that is not live."""

    name: str

    def __str__(self) -> str:
        return f"No active session: {self.name}"


@dataclass(eq=False)
class SpawnError(ToolBridgeError):
    """Creating the subprocess failed."""

    command: str
    reason: str

    def __str__(self) -> str:
        return self.reason


class ConfigurationError(ToolBridgeError):
    """A required configuration value is missing or invalid."""


@dataclass(eq=False)
class UnknownCommandError(ToolBridgeError):
    """No action is bound to the command name."""

    name: str

    def __str__(self) -> str:
        return f"Unknown command: {self.name}"
