"""Package provider interface.

A provider knows how to find the newest release of a package at one kind
of upstream source and how to download its artifact.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from bpm.models.package import Package


class PackageProvider(BaseModel, ABC):
    """Abstract base class for version providers."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @abstractmethod
    def get_latest(self, package: Package) -> str:
        """Resolve the newest qualifying version of a package.

        Args:
            package: The package descriptor.

        Returns:
            The version identifier (e.g. a release tag).

        Raises:
            ProviderConfigError: If the package's locator or filters are
                invalid, or no release qualifies.
            ProviderFetchError: If the upstream listing fails.
        """

    @abstractmethod
    def fetch_package(self, package: Package, version: str, cache_dir: Path) -> Path:
        """Download the artifact of a package version.

        Args:
            package: The package descriptor.
            version: The version returned by get_latest.
            cache_dir: Directory to write the artifact into.

        Returns:
            Path of the downloaded file inside cache_dir.

        Raises:
            ProviderConfigError: If the asset pattern is invalid.
            ProviderFetchError: If no asset matches or the download fails.
        """

    def close(self) -> None:
        """Release network resources held by the provider."""
