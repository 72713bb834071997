"""The remembered directory that holds the tool artifact."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from toolbridge.config.paths import get_default_tool_dir
from toolbridge.config.schema import DEFAULT_ARTIFACT_NAME, ToolConfig
from toolbridge.errors import ArtifactNotFoundError


@dataclass
class ToolLocation:
    """Directory believed to contain the artifact.

    One instance is shared by the installer, the session manager and the
    commands. The installer updates it after a successful install; the user
    may also point it somewhere else with set_directory().

    Attributes:
        directory: Directory holding the artifact, or None if unknown.
        artifact_name: File name of the artifact inside the directory.
    """

    directory: Path | None = None
    artifact_name: str = DEFAULT_ARTIFACT_NAME

    @classmethod
    def from_config(cls, config: ToolConfig) -> ToolLocation:
        directory = (
            Path(config.directory).expanduser() if config.directory else get_default_tool_dir()
        )
        return cls(directory=directory, artifact_name=config.artifact_name)

    def set_directory(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()

    @property
    def artifact_path(self) -> Path:
        """Full path of the artifact.

        Raises:
            ArtifactNotFoundError: If no directory is known.
        """
        if self.directory is None:
            raise ArtifactNotFoundError(path=None)
        return self.directory / self.artifact_name

    def exists(self) -> bool:
        if self.directory is None:
            return False
        return self.artifact_path.exists()
