"""bpm remove command - uninstall a package binary."""

import typer

from bpm.commands.common import managed


def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the package to uninstall."),
) -> None:
    """Remove an installed package.

    Deletes the binary and forgets the installed version. The package stays
    registered, so it can be installed again later.
    """
    with managed(ctx) as manager:
        manager.remove(name)
