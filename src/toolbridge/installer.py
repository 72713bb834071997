"""Installs the tool artifact into a directory when it is missing."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import httpx

from toolbridge.errors import FetchError, WriteError
from toolbridge.location import ToolLocation
from toolbridge.logging import VERBOSE, get_logger

log = get_logger("installer")


@dataclass
class InstallResult:
    """Outcome of ensure_installed().

    Attributes:
        path: Where the artifact now lives.
        fetched: False if the artifact was already present.
        size: Bytes written, or None when nothing was fetched.
    """

    path: Path
    fetched: bool
    size: int | None = None

    def __repr__(self) -> str:
        if self.fetched:
            return f"<InstallResult fetched {self.path} ({self.size} bytes)>"
        return f"<InstallResult present {self.path}>"


class ToolInstaller:
    """Fetches the artifact from its release location.

    There is no retry and no content verification: a failed fetch is
    reported to the caller as FetchError.
    """

    def __init__(
        self,
        location: ToolLocation,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the installer.

        Args:
            location: ToolLocation updated after a successful install.
            timeout: HTTP timeout in seconds.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self._location = location
        self._timeout = timeout
        self._transport = transport

    @property
    def location(self) -> ToolLocation:
        return self._location

    async def ensure_installed(
        self,
        target_dir: str | Path,
        artifact_name: str,
        source_url: str,
    ) -> InstallResult:
        """Make sure target_dir/artifact_name exists, fetching it if needed.

        Args:
            target_dir: Directory to install into (created if missing).
            artifact_name: File name of the artifact.
            source_url: Where to GET the artifact from.

        Returns:
            InstallResult; fetched is False when the artifact was already there.

        Raises:
            FetchError: Remote unreachable or non-success status.
            WriteError: Target directory not writable.
        """
        target = Path(target_dir).expanduser()
        path = target / artifact_name

        if path.exists():
            log.debug("Artifact already present at %s", path)
            self._remember(target, artifact_name)
            return InstallResult(path=path, fetched=False)

        log.info("Fetching %s", source_url)
        content = await self._fetch(source_url)
        self._write_atomic(target, path, content)
        log.info("Installed %s (%d bytes)", path, len(content))

        self._remember(target, artifact_name)
        return InstallResult(path=path, fetched=True, size=len(content))

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(url=url, reason=str(e) or type(e).__name__) from e

        if not response.is_success:
            raise FetchError(
                url=url,
                reason=response.reason_phrase,
                status_code=response.status_code,
            )
        log.log(
            VERBOSE, "GET %s -> %d (%d bytes)",
            response.url, response.status_code, len(response.content),
        )
        return response.content

    def _write_atomic(self, target: Path, path: Path, content: bytes) -> None:
        tmp_name: str | None = None
        try:
            target.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target, prefix=f".{path.name}.", suffix=".part")
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise WriteError(path=str(path), reason=e.strerror or str(e)) from e

    def _remember(self, target: Path, artifact_name: str) -> None:
        self._location.directory = target
        self._location.artifact_name = artifact_name
