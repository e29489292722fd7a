"""Pydantic models for the bpm configuration file.

The configuration is a small YAML document naming the folders bpm works
in plus optional provider credentials:

    bin_folder: $HOME/bin
    state_folder: $HOME/.config/bpm
    packages_folder: ""        # defaults to <state_folder>/packages
    github:
      username: me
      token: ghp_...
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from bpm.errors import ConfigLoadError
from bpm.utils.files import expand_path, read_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/bpm/config.yaml")
DEFAULT_BIN_FOLDER = "$HOME/bin"
DEFAULT_STATE_FOLDER = "$HOME/.config/bpm"


class GithubConfig(BaseModel):
    """Credentials for the GitHub provider.

    Attributes:
        username: GitHub user name for authenticated API access.
        token: Personal access token paired with username.
    """

    username: str = Field(default="", description="GitHub user name")
    token: str = Field(default="", description="GitHub personal access token")


class Config(BaseModel):
    """bpm configuration with all paths expanded.

    Attributes:
        bin_folder: Directory installed executables are written to.
        state_folder: Directory holding state.yaml.
        packages_folder: Directory holding one <name>.yaml per package.
        quiet: Suppress progress output on stdout.
        github: Credentials for the GitHub provider.
    """

    bin_folder: Path = Field(default=Path(DEFAULT_BIN_FOLDER))
    state_folder: Path = Field(default=Path(DEFAULT_STATE_FOLDER))
    packages_folder: Path | None = Field(default=None)
    quiet: bool = Field(default=False, description="Suppress non-essential output")
    github: GithubConfig = Field(default_factory=GithubConfig)

    @model_validator(mode="after")
    def _expand_folders(self) -> "Config":
        self.bin_folder = expand_path(self.bin_folder)
        self.state_folder = expand_path(self.state_folder)
        if self.packages_folder is None or str(self.packages_folder) in ("", "."):
            self.packages_folder = self.state_folder / "packages"
        else:
            self.packages_folder = expand_path(self.packages_folder)
        return self

    @property
    def state_file(self) -> Path:
        """Path of the installed-state ledger."""
        return self.state_folder / "state.yaml"


def parse_config(data: object) -> Config:
    """Validate a decoded configuration document.

    Args:
        data: The decoded YAML document (None for an empty file).

    Returns:
        The validated Config.

    Raises:
        ConfigLoadError: If the document is not a mapping or fails validation.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigLoadError("config must be a YAML mapping")
    # An explicit empty string means "use the default" for folders
    data = {key: value for key, value in data.items() if value not in ("", None)}
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(f"invalid config: {e}") from e


def load_config(path: Path | str | None = None) -> Config:
    """Load the bpm configuration.

    Args:
        path: Path to the config file. When None the default
            ~/.config/bpm/config.yaml is used if it exists, and built-in
            defaults otherwise.

    Returns:
        The validated and expanded Config.

    Raises:
        ConfigLoadError: If an explicit path is missing, or the file is
            not valid YAML or fails validation.
    """
    if path is None:
        config_path = expand_path(DEFAULT_CONFIG_PATH)
        if not config_path.exists():
            logger.debug("no config at %s, using defaults", config_path)
            return parse_config({})
    else:
        config_path = expand_path(path)

    logger.debug("load config from %s", config_path)
    try:
        data = read_yaml(config_path)
    except OSError as e:
        raise ConfigLoadError(f"cannot read {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"cannot parse {config_path}: {e}") from e

    return parse_config(data)
