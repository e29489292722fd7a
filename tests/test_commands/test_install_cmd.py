"""Tests for the bpm install, update, outdated and remove commands."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from bpm.cli import app
from bpm.errors import ProviderFetchError
from bpm.models import Config, Package, StateFile, load_state, save_package, save_state
from tests.conftest import BINARY_CONTENT, DummyProvider


@pytest.fixture
def providers(dummy_provider: DummyProvider) -> Iterator[DummyProvider]:
    """Serve the github.com provider key from the dummy provider."""
    with patch(
        "bpm.services.manager.build_providers",
        return_value={"github.com": dummy_provider},
    ):
        yield dummy_provider


@pytest.fixture
def registered(bpm_config: Config, binary_file: Path, providers: DummyProvider) -> Config:
    """Register the dummy package with a v1.0.0 release available."""
    bpm_config.packages_folder.mkdir(parents=True)
    save_package(
        Package(name="dummy", provider="github.com", url="github.com/example/dummy"),
        bpm_config.packages_folder / "dummy.yaml",
    )
    providers.latest["dummy"] = "v1.0.0"
    providers.files["dummy"] = binary_file
    return bpm_config


def _invoke(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


class TestInstallCommand:
    """Tests for bpm install."""

    def test_installs_and_saves_state(
        self, runner: CliRunner, config_file: Path, registered: Config
    ) -> None:
        """Test that install writes the binary and persists the ledger."""
        result = _invoke(runner, config_file, "install", "dummy")

        assert result.exit_code == 0
        assert "installed dummy v1.0.0" in result.output
        assert (registered.bin_folder / "dummy").read_bytes() == BINARY_CONTENT
        assert load_state(registered.state_file).installed_version("dummy") == "v1.0.0"

    def test_quiet(self, runner: CliRunner, config_file: Path, registered: Config) -> None:
        """Test that --quiet suppresses progress output."""
        result = _invoke(runner, config_file, "--quiet", "install", "dummy")

        assert result.exit_code == 0
        assert "installed" not in result.output

    def test_unknown_package(
        self, runner: CliRunner, config_file: Path, providers: DummyProvider
    ) -> None:
        """Test that an unknown package exits with code 1."""
        result = _invoke(runner, config_file, "install", "nope")

        assert result.exit_code == 1
        assert "package not found: nope" in result.output

    def test_force(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that --force reinstalls the installed version."""
        save_state(StateFile(packages={"dummy": "v1.0.0"}), registered.state_file)

        assert _invoke(runner, config_file, "install", "dummy").exit_code == 0
        assert providers.fetch_calls == []

        assert _invoke(runner, config_file, "install", "-f", "dummy").exit_code == 0
        assert providers.fetch_calls == [("dummy", "v1.0.0")]

    def test_failure_does_not_record(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that a failed install leaves the ledger file unchanged."""
        providers.fetch_errors["dummy"] = ProviderFetchError("no matching asset found")

        result = _invoke(runner, config_file, "install", "dummy")

        assert result.exit_code == 1
        assert "no matching asset found" in result.output
        assert not registered.state_file.exists()

    def test_manager_closed_after_success(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that the providers are closed once the command finishes."""
        assert _invoke(runner, config_file, "install", "dummy").exit_code == 0
        assert providers.closed

    def test_manager_closed_after_failure(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that the providers are closed when the command fails."""
        providers.fetch_errors["dummy"] = ProviderFetchError("no matching asset found")

        assert _invoke(runner, config_file, "install", "dummy").exit_code == 1
        assert providers.closed

    def test_package_file_not_utf8(
        self,
        runner: CliRunner,
        config_file: Path,
        bpm_config: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that an undecodable package file exits with code 2."""
        bpm_config.packages_folder.mkdir(parents=True)
        (bpm_config.packages_folder / "bad.yaml").write_bytes(b"name: \xff\xfe\n")

        result = _invoke(runner, config_file, "install", "dummy")

        assert result.exit_code == 2
        assert "cannot create manager" in result.output


class TestUpdateCommand:
    """Tests for bpm update."""

    def test_partial_failure(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that successful updates are saved and failures exit with 1."""
        save_package(
            Package(name="broken", provider="github.com", url="github.com/example/broken"),
            registered.packages_folder / "broken.yaml",
        )
        providers.errors["broken"] = ProviderFetchError("cannot get releases")
        save_state(
            StateFile(packages={"dummy": "v0.9.0", "broken": "v1.0.0"}), registered.state_file
        )

        result = _invoke(runner, config_file, "update")

        assert result.exit_code == 1
        assert "broken" in result.output
        state = load_state(registered.state_file)
        assert state.installed_version("dummy") == "v1.0.0"
        assert state.installed_version("broken") == "v1.0.0"

    def test_selected_names(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that only the named packages are updated."""
        save_state(StateFile(packages={"dummy": "v0.9.0"}), registered.state_file)

        result = _invoke(runner, config_file, "update", "dummy")

        assert result.exit_code == 0
        assert providers.latest_calls == ["dummy"]


class TestOutdatedCommand:
    """Tests for bpm outdated."""

    def test_lists_outdated(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that outdated packages are printed one per line."""
        providers.latest["dummy"] = "v1.1.0"
        save_state(StateFile(packages={"dummy": "v1.0.0"}), registered.state_file)

        result = _invoke(runner, config_file, "outdated")

        assert result.exit_code == 0
        assert result.output == "dummy: v1.0.0 => v1.1.0\n"

    def test_provider_error(
        self,
        runner: CliRunner,
        config_file: Path,
        registered: Config,
        providers: DummyProvider,
    ) -> None:
        """Test that a provider error exits with code 1."""
        providers.errors["dummy"] = ProviderFetchError("cannot get releases")
        save_state(StateFile(packages={"dummy": "v1.0.0"}), registered.state_file)

        result = _invoke(runner, config_file, "outdated")

        assert result.exit_code == 1
        assert "cannot get releases" in result.output


class TestRemoveCommand:
    """Tests for bpm remove."""

    def test_removes_installed(
        self, runner: CliRunner, config_file: Path, registered: Config
    ) -> None:
        """Test that remove deletes the binary and the ledger entry."""
        assert _invoke(runner, config_file, "install", "dummy").exit_code == 0

        result = _invoke(runner, config_file, "remove", "dummy")

        assert result.exit_code == 0
        assert not (registered.bin_folder / "dummy").exists()
        assert not load_state(registered.state_file).is_installed("dummy")
        assert (registered.packages_folder / "dummy.yaml").exists()

    def test_unknown(self, runner: CliRunner, config_file: Path, providers: DummyProvider) -> None:
        """Test that removing an unknown package exits with code 1."""
        assert _invoke(runner, config_file, "remove", "nope").exit_code == 1
