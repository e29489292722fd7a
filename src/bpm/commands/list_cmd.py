"""bpm list and installed commands."""

import typer

from bpm.commands.common import managed


def list_packages(ctx: typer.Context) -> None:
    """List all registered packages."""
    with managed(ctx) as manager:
        manager.list_packages()


def installed(ctx: typer.Context) -> None:
    """List installed packages with their versions."""
    with managed(ctx) as manager:
        manager.list_installed()
