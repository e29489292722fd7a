"""Pydantic model for the installed-state ledger.

state.yaml records which version of each package is installed:

    version: 1
    packages:
      ripgrep: 14.1.0
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bpm.errors import MigrationNeededError, StateLoadError
from bpm.utils.files import read_yaml, write_yaml

STATE_FILE_VERSION = 1


class StateEnvelope(BaseModel):
    """Minimal view of the state file: just its schema version."""

    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=STATE_FILE_VERSION)


class StateFile(BaseModel):
    """The installed-state ledger.

    Attributes:
        version: Ledger schema version.
        packages: Mapping of package name to installed version. A missing
            key or an empty string both mean "not installed".
    """

    # Hand-written ledgers may contain unquoted versions such as 1.10
    model_config = ConfigDict(coerce_numbers_to_str=True)

    version: int = Field(default=STATE_FILE_VERSION, description="Ledger schema version")
    packages: dict[str, str] = Field(
        default_factory=dict, description="Package name to installed version"
    )

    def installed_version(self, name: str) -> str:
        """Return the installed version of a package, or "" if not installed."""
        return self.packages.get(name) or ""

    def is_installed(self, name: str) -> bool:
        """Check whether a package has a recorded installed version."""
        return bool(self.installed_version(name))

    def record(self, name: str, version: str) -> None:
        """Record the installed version of a package."""
        self.packages[name] = version

    def forget(self, name: str) -> bool:
        """Drop a package from the ledger.

        Returns:
            True if an entry was removed.
        """
        return self.packages.pop(name, None) is not None

    def installed_items(self) -> list[tuple[str, str]]:
        """Return (name, version) pairs of installed packages sorted by name."""
        return sorted((name, version) for name, version in self.packages.items() if version)


def load_state(path: Path) -> StateFile:
    """Load the ledger, returning an empty one if the file does not exist.

    Args:
        path: Path to state.yaml.

    Returns:
        The loaded StateFile.

    Raises:
        MigrationNeededError: If the file's version is not the current one.
        StateLoadError: If the file is not valid YAML or does not validate.
    """
    if not path.exists():
        return StateFile()

    try:
        data = read_yaml(path)
    except yaml.YAMLError as e:
        raise StateLoadError(f"cannot parse state file {path}: {e}") from e

    if data is None:
        return StateFile()
    if not isinstance(data, dict):
        raise StateLoadError(f"state file {path} must be a YAML mapping")

    try:
        version = StateEnvelope.model_validate(data).version
    except ValidationError as e:
        raise StateLoadError(f"invalid state file {path}: {e}") from e
    if version != STATE_FILE_VERSION:
        raise MigrationNeededError(
            f"state file {path} has version {version}, expected {STATE_FILE_VERSION};"
            " run 'bpm migrate'"
        )

    if data.get("packages") is None:
        data = {**data, "packages": {}}
    try:
        return StateFile.model_validate(data)
    except ValidationError as e:
        raise StateLoadError(f"invalid state file {path}: {e}") from e


def save_state(state: StateFile, path: Path) -> None:
    """Write the ledger to a YAML file.

    Args:
        state: The ledger to save.
        path: Path to write the file to.
    """
    write_yaml(path, state.model_dump(mode="json"))
