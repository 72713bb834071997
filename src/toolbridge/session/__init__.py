"""REPL sessions and one-shot invocations of the tool."""

from toolbridge.session.ansi import AnsiFilter
from toolbridge.session.session_manager import ToolSessionManager
from toolbridge.session.sink import BufferSink, ConsoleSink, DisplaySink
from toolbridge.session.tool_session import InvocationRequest, ToolSession

__all__ = [
    "AnsiFilter",
    "BufferSink",
    "ConsoleSink",
    "DisplaySink",
    "InvocationRequest",
    "ToolSession",
    "ToolSessionManager",
]
