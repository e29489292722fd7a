"""bpm migrate command - upgrade on-disk files to the current schema."""

import logging

import typer

from bpm.commands.common import managed
from bpm.utils import print_success

logger = logging.getLogger(__name__)


def migrate(ctx: typer.Context) -> None:
    """Migrate the state file and package files.

    Run this when another command reports that a migration is needed.
    Files that are already current are left as they are.
    """
    with managed(ctx, migrate=True) as manager:
        results = manager.migrate()

    count = sum(1 for result in results if result.migrated)
    if not manager.config.quiet:
        print_success(f"Migrated {count} file(s)")
