"""Shared plumbing for bpm commands.

Every command runs inside `managed()`, which builds the Manager from the
global options, maps failures to exit codes and saves the ledger after
the command body succeeds.
"""

import logging
import tarfile
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from pydantic import BaseModel

from bpm.errors import BpmError, ManagerCreateError
from bpm.services import Manager
from bpm.utils import print_error

logger = logging.getLogger(__name__)

EXIT_OPERATION_ERROR = 1
EXIT_CONFIG_ERROR = 2

# Failures that surface from the install pipeline without a BpmError wrapper
OPERATION_ERRORS: tuple[type[Exception], ...] = (
    BpmError,
    OSError,
    tarfile.TarError,
    zipfile.BadZipFile,
)


class CliOptions(BaseModel):
    """Global options collected by the bpm callback.

    Attributes:
        config: Explicit config file path, or None for the default location.
        quiet: Suppress progress output regardless of the config file.
    """

    config: Path | None = None
    quiet: bool = False


def get_options(ctx: typer.Context) -> CliOptions:
    """Return the global options stored on the click context."""
    options = ctx.find_object(CliOptions)
    return options if options is not None else CliOptions()


@contextmanager
def managed(ctx: typer.Context, migrate: bool = False) -> Iterator[Manager]:
    """Build a Manager for one command and persist its ledger afterwards.

    Args:
        ctx: The typer context carrying CliOptions.
        migrate: Build the manager in migrate mode (no load, no save).

    Yields:
        The ready Manager.

    Raises:
        typer.Exit: With code 2 if the manager cannot be created, or 1 if
            the command body or the final save fails. The manager is closed
            in either case.
    """
    options = get_options(ctx)
    try:
        manager = Manager.create(options.config, migrate=migrate)
    except ManagerCreateError as e:
        print_error(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from e

    if options.quiet:
        manager.config.quiet = True

    try:
        yield manager
        if not migrate:
            manager.save_state()
    except OPERATION_ERRORS as e:
        logger.debug("command failed", exc_info=True)
        print_error(str(e))
        raise typer.Exit(EXIT_OPERATION_ERROR) from e
    finally:
        manager.close()
