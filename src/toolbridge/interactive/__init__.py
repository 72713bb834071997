"""Interactive terminal front end."""

from toolbridge.interactive.repl import InteractiveRepl

__all__ = ["InteractiveRepl"]
