"""Incremental ANSI escape interpretation for REPL output."""

from __future__ import annotations

import re

from rich.ansi import AnsiDecoder
from rich.text import Text

# An escape sequence cut off at the end of a chunk: ESC, ESC [ params, or an
# OSC sequence still waiting for its terminator.
_PARTIAL_ESCAPE = re.compile(r"\x1b(?:\[[0-9;:?]*|\][^\x07\x1b]*)?$")


class AnsiFilter:
    """Turns raw terminal output into styled rich Text.

    Output arrives in arbitrary chunks, so the filter keeps the current SGR
    style between calls and holds back an escape sequence that is split
    across a chunk boundary until the rest of it arrives.
    """

    def __init__(self) -> None:
        self._decoder = AnsiDecoder()
        self._pending = ""

    def feed(self, chunk: str) -> Text:
        data = self._pending + chunk
        match = _PARTIAL_ESCAPE.search(data)
        if match:
            self._pending = data[match.start():]
            data = data[: match.start()]
        else:
            self._pending = ""
        return self._decode(data)

    def flush(self) -> Text:
        """End of stream: drop an escape sequence that never completed."""
        data, self._pending = self._pending, ""
        return self._decode(_PARTIAL_ESCAPE.sub("", data))

    def _decode(self, data: str) -> Text:
        text = Text()
        if not data:
            return text
        lines = data.split("\n")
        for index, line in enumerate(lines):
            line = line.rstrip("\r")
            if line:
                text.append(self._decoder.decode_line(line))
            if index < len(lines) - 1:
                text.append("\n")
        return text
