"""File and document utilities for bpm."""

import os
from pathlib import Path
from typing import Any

import yaml


def ensure_dir(path: Path | str) -> Path:
    """Create directory and all parent directories if they don't exist.

    Args:
        path: Path to the directory to create.

    Returns:
        The Path object for the created directory.

    Raises:
        FileExistsError: If the path exists and is not a directory.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def expand_path(path: Path | str) -> Path:
    """Expand a leading ``~`` and ``$VARIABLES`` in a path.

    Args:
        path: Path that may contain ``~`` or environment variables.

    Returns:
        The expanded path.
    """
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def read_yaml(path: Path | str) -> Any:
    """Load a YAML document from disk.

    Args:
        path: Path to the YAML file.

    Returns:
        The decoded document, or None for an empty file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the content is not valid YAML or not valid
            UTF-8 (reported as yaml.reader.ReaderError).
    """
    # The YAML reader decodes the bytes itself
    with Path(path).open("rb") as f:
        return yaml.safe_load(f)


def write_yaml(path: Path | str, data: Any) -> None:
    """Write a YAML document to disk, replacing any existing content.

    Args:
        path: Path to write the file to.
        data: Plain data (dicts, lists, scalars) to encode.
    """
    Path(path).write_text(dump_yaml(data), encoding="utf-8")


def dump_yaml(data: Any) -> str:
    """Encode plain data as a YAML string in bpm's on-disk layout."""
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
