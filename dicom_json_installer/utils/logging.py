"""Logging configuration utilities."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    level: int = logging.WARNING,
    format_string: str | None = None,
    console: Console | None = None,
) -> None:
    """
    Set up logging configuration.

    Parameters
    ----------
    level : int
        Logging level
    format_string : str | None
        Custom format string
    console : Console | None
        Rich console instance, defaults to one writing to stderr
    """
    if console is None:
        console = Console(stderr=True)

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=level <= logging.DEBUG,
        markup=False,
        rich_tracebacks=True,
    )

    if format_string is None:
        format_string = "%(message)s"

    rich_handler.setFormatter(logging.Formatter(format_string))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(rich_handler)


def level_from_flags(verbose: int, quiet: bool) -> int:
    """Translate ``-v``/``-q`` counts into a logging level."""
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose >= 1:
        return logging.INFO
    return logging.WARNING

