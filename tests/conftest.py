"""Shared pytest fixtures for bpm tests."""

import io
import re
import shutil
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml
from pydantic import Field
from typer.testing import CliRunner

from bpm.errors import ProviderFetchError
from bpm.models import Config, Package
from bpm.services import Manager, PackageProvider

BINARY_CONTENT = b"#!/bin/sh\necho dummy\n"


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


class DummyProvider(PackageProvider):
    """In-memory provider serving fixed versions and local files.

    Attributes:
        latest: Package name to the version get_latest returns.
        files: Package name to the local file fetch_package serves.
        errors: Package name to an exception get_latest raises.
        fetch_errors: Package name to an exception fetch_package raises.
        latest_calls: Names passed to get_latest, in call order.
        fetch_calls: (name, version) pairs passed to fetch_package.
        closed: Whether close was called.
    """

    latest: dict[str, str] = Field(default_factory=dict)
    files: dict[str, Path] = Field(default_factory=dict)
    errors: dict[str, Exception] = Field(default_factory=dict)
    fetch_errors: dict[str, Exception] = Field(default_factory=dict)
    latest_calls: list[str] = Field(default_factory=list)
    fetch_calls: list[tuple[str, str]] = Field(default_factory=list)
    closed: bool = False

    def get_latest(self, package: Package) -> str:
        self.latest_calls.append(package.name)
        if package.name in self.errors:
            raise self.errors[package.name]
        if package.name not in self.latest:
            raise ProviderFetchError(f"no releases for {package.name}")
        return self.latest[package.name]

    def fetch_package(self, package: Package, version: str, cache_dir: Path) -> Path:
        self.fetch_calls.append((package.name, version))
        if package.name in self.fetch_errors:
            raise self.fetch_errors[package.name]
        source = self.files[package.name]
        target = Path(cache_dir) / source.name
        shutil.copyfile(source, target)
        return target

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for testing commands."""
    return CliRunner()


@pytest.fixture
def bpm_config(tmp_path: Path) -> Config:
    """Create a configuration rooted in a temporary directory.

    Args:
        tmp_path: pytest's built-in tmp_path fixture.

    Returns:
        Config with bin and state folders under tmp_path.
    """
    return Config(bin_folder=tmp_path / "bin", state_folder=tmp_path / "state")


@pytest.fixture
def config_file(tmp_path: Path, bpm_config: Config) -> Path:
    """Write a config file matching bpm_config.

    Returns:
        Path to the config.yaml file.
    """
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "bin_folder": str(bpm_config.bin_folder),
                "state_folder": str(bpm_config.state_folder),
            }
        )
    )
    return path


@pytest.fixture
def dummy_provider() -> DummyProvider:
    """Create an empty DummyProvider."""
    return DummyProvider()


@pytest.fixture
def dummy_package() -> Package:
    """Create a package served by the github.com provider key."""
    return Package(name="dummy", provider="github.com", url="github.com/example/dummy")


@pytest.fixture
def binary_file(tmp_path: Path) -> Path:
    """Create a small shell script standing in for a released binary."""
    path = tmp_path / "dummy-bin.sh"
    path.write_bytes(BINARY_CONTENT)
    return path


@pytest.fixture
def make_tar(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing tar archives.

    The factory takes a file name, a mapping of member name to content and
    an optional gzip flag, and returns the archive path.
    """

    def _make(name: str, members: dict[str, bytes], gz: bool = False) -> Path:
        path = tmp_path / name
        with tarfile.open(path, "w:gz" if gz else "w") as archive:
            for member_name, content in members.items():
                info = tarfile.TarInfo(member_name)
                info.size = len(content)
                info.mode = 0o644
                archive.addfile(info, io.BytesIO(content))
        return path

    return _make


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing zip archives.

    Member names ending in "/" are written as directory entries.
    """

    def _make(name: str, members: dict[str, bytes]) -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            for member_name, content in members.items():
                info = zipfile.ZipInfo(member_name)
                if member_name.endswith("/"):
                    info.external_attr = (0o40755 << 16) | 0x10
                else:
                    info.external_attr = 0o100644 << 16
                archive.writestr(info, content)
        return path

    return _make


@pytest.fixture
def manager(bpm_config: Config, dummy_provider: DummyProvider) -> Manager:
    """Create an initialized Manager using the dummy provider.

    Output is captured in a StringIO available as manager.out.
    """
    mgr = Manager(
        config=bpm_config,
        providers={"github.com": dummy_provider},
        out=io.StringIO(),
    )
    mgr.init()
    return mgr
