"""Rich console utilities for consistent terminal output.

This module provides the shared Rich Console instances and helper
functions for status messages printed by the CLI.
"""

import logging
import sys

from rich.console import Console

logger = logging.getLogger(__name__)

# Legacy Windows encodings that require special handling
LEGACY_WINDOWS_ENCODINGS = frozenset({"cp1252", "cp437", "ascii"})


def create_console(stderr: bool = False) -> Console:
    """Create a Rich Console suited to the current terminal.

    Args:
        stderr: Write to stderr instead of stdout.

    Returns:
        Console: A configured Rich Console instance.
    """
    stream = sys.stderr if stderr else sys.stdout
    if sys.platform == "win32":
        encoding = (getattr(stream, "encoding", None) or "utf-8").lower().replace("-", "")
        if encoding in LEGACY_WINDOWS_ENCODINGS:
            logger.debug("legacy Windows encoding '%s', enabling legacy_windows", encoding)
            return Console(stderr=stderr, legacy_windows=True)

    return Console(stderr=stderr)


console = create_console()
err_console = create_console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message with a green checkmark.

    Args:
        message: The success message to display.
    """
    console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str) -> None:
    """Print an error message with a red X.

    Args:
        message: The error message to display.
    """
    err_console.print(f"[bold red]✗[/bold red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message with a yellow warning sign.

    Args:
        message: The warning message to display.
    """
    err_console.print(f"[bold yellow]⚠[/bold yellow] {message}")
