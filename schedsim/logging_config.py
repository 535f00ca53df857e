"""Logging setup for the command-line entry point.

The library modules only create loggers; configuring handlers is left to
whoever embeds the engine.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(name)s: %(message)s"


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route log records through Rich.

    Args:
        verbose: If True, log at DEBUG (per-decision engine trace); otherwise WARNING.
        console: Console to write to; defaults to stderr.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format=DEFAULT_FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(console=console or Console(stderr=True), show_path=False)],
        force=True,
    )
