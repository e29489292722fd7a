"""bpm add command - register a new package."""

import logging

import typer

from bpm.commands.common import managed

logger = logging.getLogger(__name__)


def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Package name, also the installed binary name."),
    url: str = typer.Argument(..., help="Provider locator, e.g. github.com/<owner>/<repo>."),
) -> None:
    """Register a package.

    Writes a descriptor with default patterns to the packages folder.
    Edit the file to adjust asset_pattern, archive_format or bin_pattern.
    """
    with managed(ctx) as manager:
        manager.add(name, url)
