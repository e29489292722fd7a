"""bpm install command - install the latest version of a package."""

import logging

import typer

from bpm.commands.common import managed

logger = logging.getLogger(__name__)


def install(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of a registered package."),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Reinstall even if the latest version is already installed.",
    ),
) -> None:
    """Install a package.

    Resolves the latest version through the package's provider, downloads
    and unpacks it, and places the binary in the bin folder.
    """
    with managed(ctx) as manager:
        installed = manager.install(name, force=force)
        if not installed:
            logger.info("%s is already up to date", name)
