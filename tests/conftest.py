"""Root pytest configuration for all tests."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from toolbridge.config import reset_config
from toolbridge.location import ToolLocation
from toolbridge.session.session_manager import ToolSessionManager

pytest_plugins = ("pytest_asyncio",)

# Stands in for the jar: a REPL when started with "repl", otherwise a
# one-shot that records its arguments in the working directory.
ECHO_TOOL = textwrap.dedent(
    """
    import sys

    mode = sys.argv[1] if len(sys.argv) > 1 else ""
    if mode == "repl":
        sys.stdout.write("\\x1b[32mready\\x1b[0m\\n")
        sys.stdout.flush()
        for line in sys.stdin:
            sys.stdout.write("got: " + line)
            sys.stdout.flush()
    else:
        with open("invoked.txt", "w", encoding="utf-8") as f:
            f.write(" ".join(sys.argv[1:]))
        sys.exit(3 if mode == "fail" else 0)
    """
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    """Keep user/system config and TOOLBRIDGE_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
    for var in ("TOOLBRIDGE_LOG", "TOOLBRIDGE_HOME", "TOOLBRIDGE_SOURCE_URL", "TOOLBRIDGE_RUNTIME"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def echo_tool_source() -> str:
    return ECHO_TOOL


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    """Directory holding the echo tool artifact."""
    directory = tmp_path / "bin"
    directory.mkdir()
    (directory / "tool.jar").write_text(ECHO_TOOL, encoding="utf-8")
    return directory


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def location(tool_dir: Path) -> ToolLocation:
    return ToolLocation(directory=tool_dir, artifact_name="tool.jar")


@pytest.fixture
async def manager(location: ToolLocation):
    """Session manager that runs the echo tool with the current interpreter."""
    manager = ToolSessionManager(
        location,
        runtime=sys.executable,
        runtime_args=[],
        repl_args=["repl"],
    )
    yield manager
    await manager.shutdown()
    await manager.wait_one_shots()
