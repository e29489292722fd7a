"""bpm data models."""

from bpm.models.config import Config, GithubConfig, load_config, parse_config
from bpm.models.package import (
    PACKAGE_SCHEMA_VERSION,
    Package,
    PackageEnvelope,
    PackageV1,
    expand_pattern,
    load_package,
    parse_package,
    read_schema_version,
    save_package,
)
from bpm.models.state import STATE_FILE_VERSION, StateEnvelope, StateFile, load_state, save_state

__all__ = [
    "PACKAGE_SCHEMA_VERSION",
    "STATE_FILE_VERSION",
    "Config",
    "GithubConfig",
    "Package",
    "PackageEnvelope",
    "PackageV1",
    "StateEnvelope",
    "StateFile",
    "expand_pattern",
    "load_config",
    "load_package",
    "load_state",
    "parse_config",
    "parse_package",
    "read_schema_version",
    "save_package",
    "save_state",
]
