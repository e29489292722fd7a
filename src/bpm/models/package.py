"""Pydantic models for package descriptor files.

Each package bpm knows about is described by one YAML document in the
packages folder. The document carries a schema_version tag:

- Version 1 (legacy): goos/goarch are plain strings.
- Version 2 (current): goos/goarch map the local platform name to the
  name the upstream project uses for it.

Loading is two-phase: the version envelope is read first, then the
document is validated against the model for that version.
"""

import logging
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bpm.errors import MigrationNeededError, PackageLoadError, UnknownPackageFileVersionError
from bpm.utils.files import read_yaml, write_yaml
from bpm.utils.platform import local_goarch, local_goos

logger = logging.getLogger(__name__)

PACKAGE_SCHEMA_VERSION = 2
LEGACY_PACKAGE_SCHEMA_VERSION = 1

ArchiveFormat = Literal["", "tar", "tar.gz", "zip"]

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class PackageEnvelope(BaseModel):
    """Minimal view of a package document: just its schema version."""

    model_config = ConfigDict(extra="ignore")

    schema_version: int = Field(default=LEGACY_PACKAGE_SCHEMA_VERSION)


class _PackageFields(BaseModel):
    """Fields shared by every package schema version.

    Unknown keys are kept so they survive migration and re-saving.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Unique package name")
    provider: str = Field(default="", description="Provider key, e.g. github.com")
    url: str = Field(default="", description="Provider-specific locator")
    asset_pattern: str = Field(
        default="${goos}-${goarch}", description="Regex template selecting the release asset"
    )
    archive_format: ArchiveFormat = Field(default="", description="Archive format of the asset")
    bin_pattern: str = Field(
        default="${name}", description="Regex template selecting the binary inside the archive"
    )
    download_url: str = Field(default="", description="Direct download URL template")
    tag_filter: str = Field(default="", description="Regex release tags must match")
    pre_releases: bool = Field(default=False, description="Whether prereleases qualify")


class Package(_PackageFields):
    """A package descriptor at the current schema version.

    Attributes:
        name: Unique package name, also the installed binary name.
        provider: Key into the manager's provider table.
        url: Provider-specific locator (github.com/<owner>/<repo>).
        goos: Local OS name to upstream OS name overrides.
        goarch: Local architecture name to upstream architecture overrides.
        asset_pattern: Template for the regex selecting the release asset.
        archive_format: One of "", "tar", "tar.gz", "zip".
        bin_pattern: Template for the regex selecting the binary in an archive.
        download_url: Optional template; bypasses the provider's own fetch.
        tag_filter: Regex release tags must match (empty matches all).
        pre_releases: Whether prerelease tags qualify.
        schema_version: Document schema version (2).
    """

    goos: dict[str, str] = Field(default_factory=dict)
    goarch: dict[str, str] = Field(default_factory=dict)
    schema_version: int = Field(default=PACKAGE_SCHEMA_VERSION)

    def expand(self, template: str, version: str = "") -> str:
        """Expand placeholders in a template for this package.

        See expand_pattern.
        """
        return expand_pattern(template, self, version)


class PackageV1(_PackageFields):
    """A package descriptor at the legacy schema version 1."""

    goos: str = Field(default="")
    goarch: str = Field(default="")
    schema_version: int = Field(default=LEGACY_PACKAGE_SCHEMA_VERSION)

    def migrate(self) -> Package:
        """Convert this descriptor to the current schema.

        The scalar goos/goarch overrides become single-entry mappings keyed
        by the local platform names.

        Returns:
            The equivalent Package at schema version 2.
        """
        data = self.model_dump(exclude={"goos", "goarch", "schema_version"})
        return Package(
            **data,
            goos={local_goos(): self.goos} if self.goos else {},
            goarch={local_goarch(): self.goarch} if self.goarch else {},
            schema_version=PACKAGE_SCHEMA_VERSION,
        )


def expand_pattern(template: str, package: Package, version: str = "") -> str:
    """Resolve ${...} placeholders in a provider-facing template.

    Recognized placeholders are name, version, goos and goarch. goos and
    goarch use the package's override for the local platform, falling back
    to the local platform name. Unknown placeholders expand to "".

    Args:
        template: The template string (asset pattern, bin pattern, URL).
        package: The package supplying name and platform overrides.
        version: The version to substitute for ${version}.

    Returns:
        The expanded string.
    """
    goos = local_goos()
    goarch = local_goarch()
    values = {
        "name": package.name,
        "version": version,
        "goos": package.goos.get(goos, goos),
        "goarch": package.goarch.get(goarch, goarch),
    }
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), ""), template)


def read_schema_version(data: object) -> int:
    """Read the schema_version envelope of a decoded package document.

    Raises:
        PackageLoadError: If the document is not a mapping or the tag is
            not an integer.
    """
    if not isinstance(data, dict):
        raise PackageLoadError("package document must be a YAML mapping")
    try:
        return PackageEnvelope.model_validate(data).schema_version
    except ValidationError as e:
        raise PackageLoadError(f"invalid schema_version: {e}") from e


def parse_package(data: object, source: Path | str | None = None) -> Package:
    """Validate a decoded package document at the current schema.

    Args:
        data: The decoded YAML document.
        source: Where the document came from, used in error messages.

    Returns:
        The validated Package.

    Raises:
        MigrationNeededError: If the document uses the legacy schema.
        UnknownPackageFileVersionError: If the schema version is unknown.
        PackageLoadError: If the document does not validate.
    """
    version = read_schema_version(data)
    if version == LEGACY_PACKAGE_SCHEMA_VERSION:
        where = f" {source}" if source is not None else ""
        raise MigrationNeededError(
            f"package file{where} uses schema version {version}, run 'bpm migrate'"
        )
    if version != PACKAGE_SCHEMA_VERSION:
        raise UnknownPackageFileVersionError(version, source)
    try:
        return Package.model_validate(data)
    except ValidationError as e:
        raise PackageLoadError(f"invalid package {source or ''}: {e}") from e


def load_package(path: Path) -> Package:
    """Load a package descriptor file.

    Args:
        path: Path to the <name>.yaml file.

    Returns:
        The validated Package.

    Raises:
        PackageLoadError: If the file is not valid YAML or does not validate.
        MigrationNeededError: If the file uses the legacy schema.
        UnknownPackageFileVersionError: If the schema version is unknown.
    """
    try:
        data = read_yaml(path)
    except yaml.YAMLError as e:
        raise PackageLoadError(f"cannot parse {path}: {e}") from e
    return parse_package(data, path)


def save_package(package: Package, path: Path) -> None:
    """Write a package descriptor to a YAML file.

    Args:
        package: Package to save.
        path: Path to write the file to.
    """
    write_yaml(path, package.model_dump(mode="json"))
