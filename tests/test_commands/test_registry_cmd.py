"""Tests for the bpm init, add, info, list, installed and migrate commands."""

from pathlib import Path

import yaml
from typer.testing import CliRunner

from bpm.cli import app
from bpm.models import Config, StateFile, load_package, save_state


def _invoke(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


class TestInitCommand:
    """Tests for bpm init."""

    def test_creates_folders(
        self, runner: CliRunner, config_file: Path, bpm_config: Config
    ) -> None:
        """Test that init creates the folders and an empty ledger."""
        result = _invoke(runner, config_file, "init")

        assert result.exit_code == 0
        assert "Initialized bpm" in result.output
        assert bpm_config.bin_folder.is_dir()
        assert bpm_config.packages_folder.is_dir()
        assert yaml.safe_load(bpm_config.state_file.read_text()) == {
            "version": 1,
            "packages": {},
        }

    def test_is_repeatable(self, runner: CliRunner, config_file: Path) -> None:
        """Test that init can run twice."""
        assert _invoke(runner, config_file, "init").exit_code == 0
        assert _invoke(runner, config_file, "init").exit_code == 0


class TestRegistryCommands:
    """Tests for add, info, list and installed."""

    def test_add_then_list(
        self, runner: CliRunner, config_file: Path, bpm_config: Config
    ) -> None:
        """Test that an added package is listed."""
        result = _invoke(runner, config_file, "add", "rg", "github.com/BurntSushi/ripgrep")
        assert result.exit_code == 0

        package = load_package(bpm_config.packages_folder / "rg.yaml")
        assert package.provider == "github.com"

        result = _invoke(runner, config_file, "list")
        assert result.exit_code == 0
        assert result.output == "- rg\n"

    def test_info(self, runner: CliRunner, config_file: Path, bpm_config: Config) -> None:
        """Test that info prints the descriptor and installed version."""
        _invoke(runner, config_file, "add", "rg", "github.com/BurntSushi/ripgrep")
        save_state(StateFile(packages={"rg": "14.1.0"}), bpm_config.state_file)

        result = _invoke(runner, config_file, "info", "rg")

        assert result.exit_code == 0
        assert "url: github.com/BurntSushi/ripgrep" in result.output
        assert result.output.endswith("version: 14.1.0\n")

    def test_info_unknown(self, runner: CliRunner, config_file: Path) -> None:
        """Test that info on an unknown package exits with code 1."""
        assert _invoke(runner, config_file, "info", "nope").exit_code == 1

    def test_installed(self, runner: CliRunner, config_file: Path, bpm_config: Config) -> None:
        """Test that installed lists ledger entries."""
        bpm_config.state_folder.mkdir(parents=True)
        save_state(StateFile(packages={"rg": "14.1.0", "fd": "9.0.0"}), bpm_config.state_file)

        result = _invoke(runner, config_file, "installed")

        assert result.exit_code == 0
        assert result.output == "fd - 9.0.0\nrg - 14.1.0\n"


class TestMigrateCommand:
    """Tests for bpm migrate."""

    def test_migrates_legacy_files(
        self, runner: CliRunner, config_file: Path, bpm_config: Config
    ) -> None:
        """Test that legacy package files are upgraded and then load normally."""
        bpm_config.packages_folder.mkdir(parents=True)
        legacy = bpm_config.packages_folder / "old.yaml"
        legacy.write_text("name: old\nurl: github.com/a/old\n")

        result = _invoke(runner, config_file, "migrate")

        assert result.exit_code == 0
        assert "Migrated 1 file(s)" in result.output
        assert load_package(legacy).schema_version == 2
        assert _invoke(runner, config_file, "list").output == "- old\n"

    def test_does_not_write_state(
        self, runner: CliRunner, config_file: Path, bpm_config: Config
    ) -> None:
        """Test that migrate never creates the state file."""
        assert _invoke(runner, config_file, "migrate").exit_code == 0
        assert not bpm_config.state_file.exists()

    def test_unknown_state_version(
        self, runner: CliRunner, config_file: Path, bpm_config: Config
    ) -> None:
        """Test that an unknown state version exits with code 1."""
        bpm_config.state_folder.mkdir(parents=True)
        bpm_config.state_file.write_text("version: 5\n")

        result = _invoke(runner, config_file, "migrate")

        assert result.exit_code == 1
        assert "unknown state file version 5" in result.output
