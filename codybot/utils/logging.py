"""Logging setup for the command line entry point."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING") -> None:
    """Route ``codybot`` log records to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("codybot")
    logger.handlers[:] = [handler]
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
