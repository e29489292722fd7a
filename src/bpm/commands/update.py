"""bpm update command - bring installed packages to their latest version."""

import logging

import typer

from bpm.commands.common import EXIT_OPERATION_ERROR, managed
from bpm.services import UpdateStatus
from bpm.utils import print_error

logger = logging.getLogger(__name__)


def update(
    ctx: typer.Context,
    names: list[str] | None = typer.Argument(
        None, help="Packages to update (default: all installed packages)."
    ),
) -> None:
    """Update installed packages.

    A failing package does not stop the others. The ledger is saved with
    every successful update, and the command exits with code 1 if any
    package failed.
    """
    with managed(ctx) as manager:
        results = manager.update(names)

    failed = [result for result in results if result.status == UpdateStatus.FAILED]
    if failed:
        for result in failed:
            print_error(f"{result.name}: {result.error}")
        raise typer.Exit(EXIT_OPERATION_ERROR)
