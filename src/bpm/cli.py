"""bpm CLI entry point.

This module provides the main entry point for bpm, a manager for
single-binary tools published as release assets.
"""

import logging
from pathlib import Path

import typer

from bpm import __version__
from bpm.commands import (
    add,
    info,
    init,
    install,
    installed,
    list_packages,
    migrate,
    outdated,
    remove,
    update,
)
from bpm.commands.common import CliOptions
from bpm.utils import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="bpm",
    help="bpm - install and update binary packages from release assets",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Handle the version flag callback.

    Args:
        value: Whether the version flag was provided.

    Raises:
        typer.Exit: Always raised after printing version when value is True.
    """
    if value:
        typer.echo(f"bpm {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="BPM_CONFIG",
        help="Config file (default: ~/.config/bpm/config.yaml).",
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error or critical.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output."),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """bpm - install and update binary packages from release assets."""
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="'--log-level'") from e

    logger.debug("using config %s", config or "default")
    ctx.obj = CliOptions(config=config, quiet=quiet)


app.command(name="init", help="Create the bpm folders and state file")(init)
app.command(name="add", help="Register a package")(add)
app.command(name="install", help="Install the latest version of a package")(install)
app.command(name="update", help="Update installed packages")(update)
app.command(name="outdated", help="Show packages with a newer version available")(outdated)
app.command(name="info", help="Show a package and its installed version")(info)
app.command(name="list", help="List registered packages")(list_packages)
app.command(name="installed", help="List installed packages")(installed)
app.command(name="remove", help="Uninstall a package binary")(remove)
app.command(name="migrate", help="Upgrade state and package files")(migrate)


if __name__ == "__main__":
    app()
