"""bpm info command."""

import typer

from bpm.commands.common import managed


def info(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of a registered package."),
) -> None:
    """Show a package descriptor and its installed version."""
    with managed(ctx) as manager:
        manager.info(name)
