"""bpm outdated command - report packages with newer releases."""

import typer

from bpm.commands.common import managed


def outdated(ctx: typer.Context) -> None:
    """Show installed packages that have a newer version available.

    Prints one `name: current => latest` line per outdated package. The
    first provider error aborts the command.
    """
    with managed(ctx) as manager:
        manager.outdated()
