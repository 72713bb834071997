"""Display sinks that receive a session's styled output."""

from __future__ import annotations

import asyncio
from typing import Protocol

from rich.console import Console
from rich.text import Text


class DisplaySink(Protocol):
    """Where REPL output is shown.

    Implementations:
    - ConsoleSink: a rich Console (terminal)
    - BufferSink: in memory, for programmatic use and tests
    """

    def append(self, text: Text) -> None: ...

    def clear(self) -> None: ...

    def scroll_to_end(self) -> None: ...


class ConsoleSink:
    """Renders output on a rich Console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def append(self, text: Text) -> None:
        self.console.print(text, end="", soft_wrap=True, highlight=False)

    def clear(self) -> None:
        self.console.clear()

    def scroll_to_end(self) -> None:
        self.console.file.flush()


class BufferSink:
    """Keeps output in memory."""

    def __init__(self) -> None:
        self.chunks: list[Text] = []
        self._appended = asyncio.Event()

    def append(self, text: Text) -> None:
        self.chunks.append(text)
        self._appended.set()

    def clear(self) -> None:
        self.chunks.clear()

    def scroll_to_end(self) -> None:
        pass  # Nothing to scroll

    @property
    def text(self) -> Text:
        return Text().join(self.chunks)

    @property
    def plain(self) -> str:
        return "".join(chunk.plain for chunk in self.chunks)

    async def wait_for(self, substring: str, timeout: float | None = 5.0) -> None:
        """Wait until substring shows up in the output.

        Raises:
            asyncio.TimeoutError: If it does not appear within timeout seconds.
        """

        async def _wait() -> None:
            while substring not in self.plain:
                self._appended.clear()
                await self._appended.wait()

        await asyncio.wait_for(_wait(), timeout=timeout)
