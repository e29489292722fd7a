"""Logging configuration for the bpm CLI.

Log records go to stderr through a RichHandler so they never mix with
command output on stdout.
"""

import logging

from rich.logging import RichHandler

from bpm.utils.console import err_console

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def parse_log_level(level: str) -> int:
    """Translate a log level name into a logging constant.

    Args:
        level: Case-insensitive level name (e.g. 'warning').

    Returns:
        The numeric logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    name = level.strip().lower()
    if name == "warn":
        name = "warning"
    if name not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r} (expected one of {', '.join(LOG_LEVELS)})")
    return getattr(logging, name.upper())


def configure_logging(level: str = "warning") -> None:
    """Install the Rich log handler on the root logger.

    Args:
        level: Log level name for bpm's console output.

    Raises:
        ValueError: If the level name is invalid.
    """
    logging.basicConfig(
        level=parse_log_level(level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=err_console,
                rich_tracebacks=True,
                show_path=False,
                markup=False,
            )
        ],
        force=True,
    )
