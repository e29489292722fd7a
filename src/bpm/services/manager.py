"""Package lifecycle manager.

The Manager owns the package registry, the installed-state ledger and the
provider table, and sequences resolve -> fetch -> extract -> install ->
record for install and update. A manager instance is not safe for
concurrent use; run one command per process.
"""

import logging
import os
import shutil
import sys
import tempfile
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator

from bpm.errors import (
    BpmError,
    ManagerCreateError,
    PackageNotFoundError,
    ProviderNotFoundError,
)
from bpm.models.config import Config, load_config
from bpm.models.package import Package, load_package, save_package
from bpm.models.state import StateFile
from bpm.models.state import load_state as read_state_file
from bpm.models.state import save_state as write_state_file
from bpm.services.archive import extract_package
from bpm.services.github import PROVIDER_KEY as GITHUB_PROVIDER_KEY
from bpm.services.github import GithubProvider
from bpm.services.migration import MigrationResult, MigrationService
from bpm.services.provider import PackageProvider
from bpm.utils.files import dump_yaml, ensure_dir
from bpm.utils.http import download_file, filename_from_url

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Config], PackageProvider]

KNOWN_PROVIDERS: tuple[tuple[str, ProviderFactory], ...] = (
    (GITHUB_PROVIDER_KEY, lambda config: GithubProvider.from_config(config.github)),
)


def build_providers(config: Config) -> dict[str, PackageProvider]:
    """Instantiate every known provider for a configuration.

    Args:
        config: The bpm configuration (provides credentials).

    Returns:
        Mapping of provider key to a fresh provider instance.
    """
    return {key: factory(config) for key, factory in KNOWN_PROVIDERS}


def staging_name(name: str, version: str) -> str:
    """Return the file name a binary is staged under before the final rename.

    Path separators in the version (tags like "release/1.0") are replaced
    so the staging file stays inside the bin folder.
    """
    safe_version = version.replace("/", "_").replace("\\", "_")
    return f"{name}-{safe_version}"


class UpdateStatus(Enum):
    """Outcome of updating a single package.

    Attributes:
        UPDATED: A newer version was installed.
        CURRENT: The installed version is already the latest.
        SKIPPED: The package is not installed.
        FAILED: Resolving or installing failed; see the result's error.
    """

    UPDATED = "updated"
    CURRENT = "current"
    SKIPPED = "skipped"
    FAILED = "failed"


class UpdateResult(BaseModel):
    """Result of updating one package.

    Attributes:
        name: Package name.
        status: The update outcome.
        current: Version installed before the update.
        latest: Latest version reported by the provider, if resolved.
        error: Error message if the update failed.
    """

    name: str
    status: UpdateStatus
    current: str = ""
    latest: str = ""
    error: str | None = None


class OutdatedPackage(BaseModel):
    """An installed package with a newer version available."""

    name: str
    current: str
    latest: str


class Manager(BaseModel):
    """Lifecycle manager for binary packages.

    Attributes:
        config: The loaded configuration.
        providers: Provider key to provider instance. Built from
            KNOWN_PROVIDERS when not given.
        packages: The package registry, keyed by name.
        state: The installed-state ledger.
        out: Text stream command output is written to (stdout if None).
        http_client: Client for direct download URLs, created on demand.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: Config
    providers: dict[str, PackageProvider] | None = None
    packages: dict[str, Package] = Field(default_factory=dict)
    state: StateFile = Field(default_factory=StateFile)
    out: Any = None
    http_client: httpx.Client | None = None

    @model_validator(mode="after")
    def _build_providers(self) -> "Manager":
        if self.providers is None:
            self.providers = build_providers(self.config)
        return self

    @classmethod
    def create(
        cls, config_path: Path | str | None = None, migrate: bool = False, out: Any = None
    ) -> "Manager":
        """Load the configuration and build an initialized manager.

        In migrate mode the ledger and registry are not loaded, since they
        may be in a schema only the migration can read.

        Args:
            config_path: Path to the config file (None for the default).
            migrate: Skip loading state for a migrate run.
            out: Text stream for command output.

        Returns:
            The ready Manager.

        Raises:
            ManagerCreateError: If config loading, directory setup or state
                loading fails.
        """
        try:
            config = load_config(config_path)
        except BpmError as e:
            raise ManagerCreateError(f"cannot create manager: {e}") from e

        manager = cls(config=config, out=out)
        try:
            manager.init()
            if not migrate:
                manager.load_state()
        except (BpmError, OSError) as e:
            manager.close()
            raise ManagerCreateError(f"cannot create manager: {e}") from e
        return manager

    # Lifecycle

    def close(self) -> None:
        """Close the HTTP clients held by the manager and its providers."""
        for provider in (self.providers or {}).values():
            provider.close()
        if self.http_client is not None:
            self.http_client.close()
            self.http_client = None

    def __enter__(self) -> "Manager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Output

    def _emit(self, line: str) -> None:
        stream = self.out if self.out is not None else sys.stdout
        stream.write(line + "\n")

    def _report(self, line: str) -> None:
        if not self.config.quiet:
            self._emit(line)

    # Setup and persistence

    def init(self) -> None:
        """Create the state, bin and packages folders.

        Raises:
            OSError: If a folder cannot be created (e.g. a file is in the way).
        """
        ensure_dir(self.config.state_folder)
        ensure_dir(self.config.bin_folder)
        ensure_dir(self.config.packages_folder)

    def package_path(self, name: str) -> Path:
        """Return the descriptor path for a package name."""
        return self.config.packages_folder / f"{name}.yaml"

    def load_state(self) -> None:
        """Load the ledger and every package descriptor.

        Raises:
            MigrationNeededError: If any document uses an old schema.
            UnknownPackageFileVersionError: If a package file version is unknown.
            PackageLoadError: If a package file cannot be parsed.
            StateLoadError: If the state file cannot be parsed.
        """
        self.state = read_state_file(self.config.state_file)
        self.packages = {}
        folder = self.config.packages_folder
        if not folder.exists():
            return
        for path in sorted(folder.rglob("*.yaml")):
            if not path.is_file():
                continue
            package = load_package(path)
            logger.info("found package %s", package.name)
            self.packages[package.name] = package

    def save_state(self) -> None:
        """Persist the ledger to state.yaml."""
        write_state_file(self.state, self.config.state_file)

    # Lookups

    def get_package(self, name: str) -> Package:
        """Return a registered package.

        Raises:
            PackageNotFoundError: If no package has that name.
        """
        package = self.packages.get(name)
        if package is None:
            raise PackageNotFoundError(name)
        return package

    def get_provider(self, package: Package) -> PackageProvider:
        """Return the provider a package names.

        Raises:
            ProviderNotFoundError: If the provider key is unknown.
        """
        provider = (self.providers or {}).get(package.provider)
        if provider is None:
            raise ProviderNotFoundError(package.provider)
        return provider

    # Read-only commands

    def info(self, name: str) -> None:
        """Print a package descriptor and its installed version.

        Raises:
            PackageNotFoundError: If the package is not registered.
        """
        package = self.get_package(name)
        self._emit(dump_yaml(package.model_dump(mode="json")).rstrip("\n"))
        version = self.state.installed_version(name) or "not installed"
        self._emit(f"version: {version}")

    def list_packages(self) -> list[str]:
        """Print and return the names of all registered packages."""
        names = sorted(self.packages)
        for name in names:
            self._emit(f"- {name}")
        return names

    def list_installed(self) -> list[tuple[str, str]]:
        """Print and return (name, version) for every installed package."""
        items = self.state.installed_items()
        for name, version in items:
            self._emit(f"{name} - {version}")
        return items

    def outdated(self) -> list[OutdatedPackage]:
        """Report installed packages with a newer version available.

        Unlike update, the first provider error aborts the whole run.
        Ledger entries whose package is no longer registered are skipped.

        Returns:
            The outdated packages, in name order.

        Raises:
            ProviderNotFoundError: If a package names an unknown provider.
            ProviderError: If resolving a latest version fails.
        """
        outdated: list[OutdatedPackage] = []
        for name, current in self.state.installed_items():
            package = self.packages.get(name)
            if package is None:
                logger.debug("skip %s: installed but no longer registered", name)
                continue
            latest = self.get_provider(package).get_latest(package)
            if latest != current:
                self._emit(f"{name}: {current} => {latest}")
                outdated.append(OutdatedPackage(name=name, current=current, latest=latest))
        return outdated

    # Mutating commands

    def add(self, name: str, url: str) -> Package:
        """Register a new package and write its descriptor.

        The provider key is the part of url before the first "/".

        Args:
            name: Package name (also the installed binary name).
            url: Provider locator, e.g. github.com/<owner>/<repo>.

        Returns:
            The new Package.
        """
        package = Package(name=name, url=url, provider=url.split("/", 1)[0])
        save_package(package, self.package_path(name))
        self.packages[name] = package
        logger.info("added package %s (%s)", name, package.provider)
        self._report(f"added {name} from {url}")
        return package

    def install(self, name: str, force: bool = False) -> bool:
        """Install the latest version of a package.

        The latest version is always resolved. If it equals the recorded
        version and force is False nothing else happens.

        Args:
            name: Package name.
            force: Reinstall even when the latest version is installed.

        Returns:
            True if a version was installed, False if it was a no-op.

        Raises:
            PackageNotFoundError: If the package is not registered.
            ProviderNotFoundError: If its provider is unknown.
            ProviderError: If resolving or fetching fails.
            ExtractionError: If the binary cannot be extracted.
            OSError: If writing the binary fails.
        """
        package = self.get_package(name)
        provider = self.get_provider(package)
        current = self.state.installed_version(name)
        version = provider.get_latest(package)
        logger.info("found package version %s", version)
        if version == current and not force:
            logger.info("version %s of %s is already installed", version, name)
            return False

        self._install_version(package, provider, version)
        return True

    def update(self, names: list[str] | None = None) -> list[UpdateResult]:
        """Update installed packages to their latest versions.

        Each package is handled independently: a failure is logged and
        recorded in the results, and the remaining packages still run.

        Args:
            names: Restrict the update to these package names. None or an
                empty list means every registered package.

        Returns:
            One UpdateResult per selected package, in name order.
        """
        selected = set(names or [])
        for unknown in sorted(selected - set(self.packages)):
            logger.warning("package %s is not registered", unknown)

        results: list[UpdateResult] = []
        for name in sorted(self.packages):
            if selected and name not in selected:
                continue
            package = self.packages[name]
            current = self.state.installed_version(name)
            if not current:
                logger.debug("skip %s: not installed", name)
                results.append(UpdateResult(name=name, status=UpdateStatus.SKIPPED))
                continue

            latest = ""
            try:
                provider = self.get_provider(package)
                latest = provider.get_latest(package)
                if latest == current:
                    logger.info("%s is up to date (%s)", name, current)
                    results.append(
                        UpdateResult(
                            name=name, status=UpdateStatus.CURRENT, current=current, latest=latest
                        )
                    )
                    continue
                self._install_version(package, provider, latest)
            except Exception as e:
                logger.error("cannot update %s: %s", name, e)
                results.append(
                    UpdateResult(
                        name=name,
                        status=UpdateStatus.FAILED,
                        current=current,
                        latest=latest,
                        error=str(e),
                    )
                )
                continue

            results.append(
                UpdateResult(name=name, status=UpdateStatus.UPDATED, current=current, latest=latest)
            )
        return results

    def remove(self, name: str) -> None:
        """Uninstall a package's binary and forget its installed version.

        The package descriptor stays registered.

        Raises:
            PackageNotFoundError: If the package is neither registered nor installed.
        """
        if name not in self.packages and not self.state.is_installed(name):
            raise PackageNotFoundError(name)
        target = self.config.bin_folder / name
        target.unlink(missing_ok=True)
        self.state.forget(name)
        self._report(f"removed {name}")

    def migrate(self) -> list[MigrationResult]:
        """Upgrade the state file and package files to the current schema.

        Raises:
            UnknownStateFileVersionError: If the state file version is unknown.
            UnknownPackageFileVersionError: If a package file version is unknown.
        """
        service = MigrationService(
            state_file=self.config.state_file, packages_folder=self.config.packages_folder
        )
        results = service.migrate_all()
        for result in results:
            if result.migrated:
                self._report(f"migrated {result.path}")
        return results

    # Install pipeline

    def _install_version(self, package: Package, provider: PackageProvider, version: str) -> None:
        with tempfile.TemporaryDirectory(prefix="bpm-") as scratch:
            scratch_dir = Path(scratch)
            path = self.fetch(package, provider, version, scratch_dir)
            path = extract_package(package, version, path, scratch_dir)
            self.install_file(package, version, path)

        self.state.record(package.name, version)
        self._report(f"installed {package.name} {version}")

    def fetch(
        self, package: Package, provider: PackageProvider, version: str, cache_dir: Path
    ) -> Path:
        """Download a package artifact.

        Uses the package's download_url template when set, otherwise the
        provider's own fetch.
        """
        if package.download_url:
            return self.fetch_from_download_url(package, version, cache_dir)
        return provider.fetch_package(package, version, cache_dir)

    def fetch_from_download_url(self, package: Package, version: str, cache_dir: Path) -> Path:
        """Download the expanded download_url of a package into cache_dir.

        Raises:
            ProviderFetchError: If the download fails.
        """
        url = package.expand(package.download_url, version)
        if self.http_client is None:
            self.http_client = httpx.Client()
        target = Path(cache_dir) / filename_from_url(url, fallback=package.name)
        return download_file(self.http_client, url, target)

    def install_file(self, package: Package, version: str, source: Path) -> Path:
        """Atomically install a file as <bin_folder>/<name>.

        The file is copied to a staging name (see staging_name) next to the
        target, made executable and renamed over the target. If the copy or
        chmod fails the staging file is removed and the existing binary is
        untouched.

        Args:
            package: The package being installed.
            version: The version being installed.
            source: The fetched or extracted binary.

        Returns:
            Path of the installed binary.

        Raises:
            OSError: If any step fails.
        """
        target = self.config.bin_folder / package.name
        staging = self.config.bin_folder / staging_name(package.name, version)
        logger.debug("install file %s to %s", source, target)
        try:
            shutil.copyfile(source, staging)
            os.chmod(staging, 0o755)
        except OSError:
            staging.unlink(missing_ok=True)
            raise
        os.replace(staging, target)
        return target
