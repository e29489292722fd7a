"""bpm init command - create the bpm folders and an empty ledger."""

import logging

import typer

from bpm.commands.common import managed
from bpm.utils import print_success

logger = logging.getLogger(__name__)


def init(ctx: typer.Context) -> None:
    """Initialize the bin, state and packages folders.

    Running init again is harmless: existing folders and files are kept.
    """
    with managed(ctx) as manager:
        config = manager.config

    if not config.quiet:
        print_success(f"Initialized bpm in {config.state_folder}")
