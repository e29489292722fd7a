"""bpm services."""

from bpm.services.archive import extract_package, extract_tar, extract_zip
from bpm.services.github import GithubProvider, Release, ReleaseAsset, sort_releases
from bpm.services.manager import (
    KNOWN_PROVIDERS,
    Manager,
    OutdatedPackage,
    UpdateResult,
    UpdateStatus,
    build_providers,
)
from bpm.services.migration import MigrationResult, MigrationService
from bpm.services.provider import PackageProvider

__all__ = [
    "KNOWN_PROVIDERS",
    "GithubProvider",
    "Manager",
    "MigrationResult",
    "MigrationService",
    "OutdatedPackage",
    "PackageProvider",
    "Release",
    "ReleaseAsset",
    "UpdateResult",
    "UpdateStatus",
    "build_providers",
    "extract_package",
    "extract_tar",
    "extract_zip",
    "sort_releases",
]
