"""Logging for toolbridge.

Everything logs under the "toolbridge" logger. Two levels sit between the
standard ones: VERBOSE for child exit codes and HTTP responses, TRACE for
every byte count relayed from a REPL and every line written to it.

Output goes to the file named by logging.file (or TOOLBRIDGE_LOG). Without
one, records go to stderr only when it is a terminal; a one-shot child
shares our stderr, so piped runs stay clean.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolbridge.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("toolbridge")

_configured = False

_NAMED_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Index is logging.verbose: 0 errors only ... 4 trace
_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

# `toolbridge` with no -v runs at info; each -v goes one step further
_DEFAULT_VERBOSITY = 2


def verbosity_from_flags(count: int) -> int | None:
    """Map a repeated -v count to a logging.verbose value (None: leave as is)."""
    if count <= 0:
        return None
    return min(_DEFAULT_VERBOSITY + count, len(_VERBOSITY_LEVELS) - 1)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level; logging.verbose beats logging.level."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = max(0, min(config.verbose, len(_VERBOSITY_LEVELS) - 1))
        return _VERBOSITY_LEVELS[index]
    if config.level:
        return _NAMED_LEVELS.get(config.level.upper(), logging.INFO)
    return logging.INFO


class _Formatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def _open_handler(config: LoggingConfig | None) -> logging.Handler | None:
    path = (config.file if config else None) or os.environ.get("TOOLBRIDGE_LOG")
    if path:
        try:
            return logging.FileHandler(os.path.expanduser(path), encoding="utf-8")
        except OSError as e:
            if not sys.stderr.isatty():
                return None
            print(f"toolbridge: cannot open log file {path}: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach a handler to the toolbridge logger. Only the first call counts."""
    global _configured
    if _configured:
        return
    _configured = True

    level = resolve_level(config)
    logger.setLevel(level)

    handler = _open_handler(config)
    if handler is None:
        return
    handler.setLevel(level)
    handler.setFormatter(_Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S"))
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """The toolbridge logger, or its child `toolbridge.<name>`."""
    return logger.getChild(name) if name else logger
