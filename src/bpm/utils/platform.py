"""Local platform identifiers.

Release assets are usually named after Go's GOOS/GOARCH values, so bpm
reports the local platform in that vocabulary.
"""

import platform
import sys

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
}


def local_goos() -> str:
    """Return the local operating system name (e.g. 'linux', 'darwin')."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform.startswith("freebsd"):
        return "freebsd"
    return platform.system().lower()


def local_goarch() -> str:
    """Return the local CPU architecture name (e.g. 'amd64', 'arm64')."""
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)
