"""bpm utilities."""

from bpm.utils.console import (
    console,
    err_console,
    print_error,
    print_success,
    print_warning,
)
from bpm.utils.files import dump_yaml, ensure_dir, expand_path, read_yaml, write_yaml
from bpm.utils.http import download_file, filename_from_url
from bpm.utils.logging import configure_logging, parse_log_level
from bpm.utils.platform import local_goarch, local_goos

__all__ = [
    "configure_logging",
    "console",
    "download_file",
    "dump_yaml",
    "ensure_dir",
    "err_console",
    "expand_path",
    "filename_from_url",
    "local_goarch",
    "local_goos",
    "parse_log_level",
    "print_error",
    "print_success",
    "print_warning",
    "read_yaml",
    "write_yaml",
]
