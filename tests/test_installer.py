"""Tests for ToolInstaller and ToolLocation."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import httpx
import pytest

from toolbridge.config.schema import ToolConfig
from toolbridge.errors import ArtifactNotFoundError, FetchError, WriteError
from toolbridge.installer import InstallResult, ToolInstaller
from toolbridge.location import ToolLocation

URL = "https://releases.example.org/tool.jar"
PAYLOAD = b"PK\x03\x04 not really a jar"


class FakeRelease:
    """httpx handler counting requests."""

    def __init__(self, status: int = 200, content: bytes = PAYLOAD) -> None:
        self.status = status
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.content)


def make_installer(handler) -> tuple[ToolInstaller, ToolLocation]:
    location = ToolLocation(directory=None)
    return ToolInstaller(location, transport=httpx.MockTransport(handler)), location


class TestToolLocation:
    def test_artifact_path(self, tmp_path):
        location = ToolLocation(directory=tmp_path, artifact_name="tool.jar")
        assert location.artifact_path == tmp_path / "tool.jar"
        assert not location.exists()

    def test_unset_directory_raises(self):
        location = ToolLocation(directory=None)
        assert not location.exists()
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            _ = location.artifact_path
        assert exc_info.value.path is None

    def test_set_directory_expands_user(self):
        location = ToolLocation()
        location.set_directory("~/tools")
        assert location.directory == Path.home() / "tools"

    def test_from_config(self, tmp_path):
        config = ToolConfig(directory=str(tmp_path), artifact_name="other.jar")
        location = ToolLocation.from_config(config)
        assert location.artifact_path == tmp_path / "other.jar"

    def test_from_config_default_directory(self):
        location = ToolLocation.from_config(ToolConfig())
        assert location.directory == Path.home() / ".toolbridge" / "bin"


class TestEnsureInstalled:
    @pytest.mark.asyncio
    async def test_fetches_missing_artifact(self, tmp_path):
        release = FakeRelease()
        installer, location = make_installer(release)

        result = await installer.ensure_installed(tmp_path / "bin", "tool.jar", URL)

        assert result.fetched
        assert result.size == len(PAYLOAD)
        assert result.path.read_bytes() == PAYLOAD
        assert len(release.requests) == 1
        assert str(release.requests[0].url) == URL

    @pytest.mark.asyncio
    async def test_updates_location(self, tmp_path):
        installer, location = make_installer(FakeRelease())

        await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert location.directory == tmp_path
        assert location.artifact_name == "tool.jar"
        assert location.exists()

    @pytest.mark.asyncio
    async def test_second_call_does_not_fetch(self, tmp_path):
        release = FakeRelease()
        installer, _ = make_installer(release)

        first = await installer.ensure_installed(tmp_path, "tool.jar", URL)
        second = await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert first.fetched
        assert not second.fetched
        assert second.path == first.path
        assert len(release.requests) == 1

    @pytest.mark.asyncio
    async def test_existing_artifact_is_left_alone(self, tmp_path):
        (tmp_path / "tool.jar").write_bytes(b"local build")
        release = FakeRelease()
        installer, location = make_installer(release)

        result = await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert result == InstallResult(path=tmp_path / "tool.jar", fetched=False)
        assert (tmp_path / "tool.jar").read_bytes() == b"local build"
        assert release.requests == []
        assert location.directory == tmp_path

    @pytest.mark.asyncio
    async def test_creates_target_directory(self, tmp_path):
        installer, _ = make_installer(FakeRelease())
        target = tmp_path / "a" / "b"

        await installer.ensure_installed(target, "tool.jar", URL)

        assert (target / "tool.jar").exists()

    @pytest.mark.asyncio
    async def test_follows_redirects(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/latest":
                return httpx.Response(302, headers={"Location": URL})
            return httpx.Response(200, content=PAYLOAD)

        installer, _ = make_installer(handler)
        result = await installer.ensure_installed(
            tmp_path, "tool.jar", "https://releases.example.org/latest"
        )
        assert result.path.read_bytes() == PAYLOAD

    @pytest.mark.asyncio
    async def test_http_error_status_raises_fetch_error(self, tmp_path):
        installer, location = make_installer(FakeRelease(status=404))

        with pytest.raises(FetchError) as exc_info:
            await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert exc_info.value.status_code == 404
        assert "404" in str(exc_info.value)
        assert not (tmp_path / "tool.jar").exists()
        assert location.directory is None

    @pytest.mark.asyncio
    async def test_unreachable_raises_fetch_error(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        installer, _ = make_installer(handler)

        with pytest.raises(FetchError) as exc_info:
            await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="directory permissions are not enforced",
    )
    async def test_unwritable_directory_raises_write_error(self, tmp_path):
        target = tmp_path / "readonly"
        target.mkdir()
        target.chmod(0o500)
        installer, location = make_installer(FakeRelease())

        try:
            with pytest.raises(WriteError) as exc_info:
                await installer.ensure_installed(target, "tool.jar", URL)
        finally:
            target.chmod(0o700)

        assert "tool.jar" in exc_info.value.path
        assert location.directory is None

    @pytest.mark.asyncio
    async def test_target_is_a_file_raises_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        installer, _ = make_installer(FakeRelease())

        with pytest.raises(WriteError):
            await installer.ensure_installed(blocker / "bin", "tool.jar", URL)

    @pytest.mark.asyncio
    async def test_no_temporary_files_left_behind(self, tmp_path):
        installer, _ = make_installer(FakeRelease())

        await installer.ensure_installed(tmp_path, "tool.jar", URL)

        assert [p.name for p in tmp_path.iterdir()] == ["tool.jar"]
