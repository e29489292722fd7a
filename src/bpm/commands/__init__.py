"""bpm CLI commands."""

from bpm.commands.add import add
from bpm.commands.info import info
from bpm.commands.init_cmd import init
from bpm.commands.install import install
from bpm.commands.list_cmd import installed, list_packages
from bpm.commands.migrate import migrate
from bpm.commands.outdated import outdated
from bpm.commands.remove import remove
from bpm.commands.update import update

__all__ = [
    "add",
    "info",
    "init",
    "install",
    "installed",
    "list_packages",
    "migrate",
    "outdated",
    "remove",
    "update",
]
