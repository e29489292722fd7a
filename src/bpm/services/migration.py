"""Schema migration for state and package files.

Migrations only look at the version tag embedded in each document and
never need a loaded registry or ledger, so they can run when normal
loading would fail. Running them again on current files changes nothing.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from bpm.errors import (
    PackageLoadError,
    StateLoadError,
    UnknownPackageFileVersionError,
    UnknownStateFileVersionError,
)
from bpm.models.package import (
    LEGACY_PACKAGE_SCHEMA_VERSION,
    PACKAGE_SCHEMA_VERSION,
    PackageV1,
    read_schema_version,
    save_package,
)
from bpm.models.state import STATE_FILE_VERSION, StateEnvelope
from bpm.utils.files import read_yaml

logger = logging.getLogger(__name__)


class MigrationResult(BaseModel):
    """Outcome of migrating one file.

    Attributes:
        path: The file that was inspected.
        migrated: Whether the file was rewritten.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path
    migrated: bool = False


def _read_document(path: Path, error: type[Exception]) -> object:
    try:
        return read_yaml(path)
    except yaml.YAMLError as e:
        raise error(f"cannot parse {path}: {e}") from e


class MigrationService(BaseModel):
    """Service upgrading on-disk documents to the current schema.

    Attributes:
        state_file: Path of state.yaml.
        packages_folder: Folder holding the package descriptor files.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state_file: Path
    packages_folder: Path

    def migrate_state_file(self) -> MigrationResult:
        """Check the state file's schema version.

        The ledger layout has not changed since version 1, so the only
        work is rejecting versions bpm does not know.

        Returns:
            MigrationResult (never migrated).

        Raises:
            UnknownStateFileVersionError: If the version is not the current one.
            StateLoadError: If the file is not a valid YAML mapping.
        """
        result = MigrationResult(path=self.state_file)
        if not self.state_file.exists():
            return result

        data = _read_document(self.state_file, StateLoadError)
        if data is None:
            return result
        if not isinstance(data, dict):
            raise StateLoadError(f"state file {self.state_file} must be a YAML mapping")
        try:
            version = StateEnvelope.model_validate(data).version
        except ValidationError as e:
            raise StateLoadError(f"invalid state file {self.state_file}: {e}") from e

        if version != STATE_FILE_VERSION:
            raise UnknownStateFileVersionError(version)
        logger.debug("state file %s is current (version %d)", self.state_file, version)
        return result

    def migrate_package_file(self, path: Path) -> MigrationResult:
        """Upgrade one package file in place.

        Args:
            path: The package descriptor file.

        Returns:
            MigrationResult with migrated=True if the file was rewritten.

        Raises:
            UnknownPackageFileVersionError: If the schema version is unknown.
            PackageLoadError: If the file cannot be parsed.
        """
        data = _read_document(path, PackageLoadError)
        version = read_schema_version(data)

        if version == PACKAGE_SCHEMA_VERSION:
            logger.debug("package file %s is current", path)
            return MigrationResult(path=path)
        if version != LEGACY_PACKAGE_SCHEMA_VERSION:
            raise UnknownPackageFileVersionError(version, path)

        try:
            legacy = PackageV1.model_validate(data)
        except ValidationError as e:
            raise PackageLoadError(f"invalid package {path}: {e}") from e

        save_package(legacy.migrate(), path)
        logger.info("migrated package file %s to schema version %d", path, PACKAGE_SCHEMA_VERSION)
        return MigrationResult(path=path, migrated=True)

    def list_package_files(self) -> list[Path]:
        """Return the package descriptor files, sorted by path."""
        if not self.packages_folder.exists():
            return []
        return sorted(p for p in self.packages_folder.rglob("*.yaml") if p.is_file())

    def migrate_all(self) -> list[MigrationResult]:
        """Migrate the state file and then every package file.

        Returns:
            One MigrationResult per inspected file.

        Raises:
            UnknownStateFileVersionError: If the state file version is unknown.
            UnknownPackageFileVersionError: If a package file version is unknown.
        """
        results = [self.migrate_state_file()]
        for path in self.list_package_files():
            results.append(self.migrate_package_file(path))
        return results
