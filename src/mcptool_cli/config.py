"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.mcptool/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .shared.logging import get_logger
from .shared.paths import (
    DEFAULT_GROUPS_FILE,
    DEFAULT_SECRETS_FILE,
    DEFAULT_SERVERS_FILE,
    LOG_DIR,
    MCPTOOL_DIR,
)

logger = get_logger(__name__)

DEFAULT_LOG_LEVEL = "warning"
DEFAULT_LOG_FORMAT = "console"
LOG_FORMATS = ("console", "json")

# Environment variable mappings
ENV_VARS = {
    "servers_file": "MCP_SERVERS_FILE",
    "groups_file": "MCP_GROUPS_FILE",
    "secrets_file": "MCPTOOL_SECRETS_FILE",
    "log_dir": "MCPTOOL_LOG_DIR",
    "log_level": "MCPTOOL_LOG_LEVEL",
    "log_file": "MCPTOOL_LOG_FILE",
    "log_format": "MCPTOOL_LOG_FORMAT",
}

PATH_KEYS = ("servers_file", "groups_file", "secrets_file", "log_dir", "log_file")
CONFIG_KEYS = (*PATH_KEYS, "log_level", "log_format")


@dataclass
class CLIConfig:
    """CLI configuration."""

    servers_file: Path = DEFAULT_SERVERS_FILE
    groups_file: Path = DEFAULT_GROUPS_FILE
    secrets_file: Path = DEFAULT_SECRETS_FILE
    log_dir: Path = LOG_DIR
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path | None = None
    log_format: str = DEFAULT_LOG_FORMAT

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.mcptool/config.yaml
    """
    return MCPTOOL_DIR / "config.yaml"


def _coerce(key: str, value: Any) -> Any:
    if key in PATH_KEYS:
        return Path(os.path.expanduser(str(value)))
    return str(value)


def load_config(overrides: dict[str, Any] | None = None) -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. CLI flags (``overrides``; None values are ignored)
    2. Environment variables
    3. Config file (~/.mcptool/config.yaml)
    4. Defaults

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("config_file_unreadable", path=str(config_path), error=str(e))
            file_config = {}

        if isinstance(file_config, dict):
            for key in CONFIG_KEYS:
                if file_config.get(key) is not None:
                    setattr(config, key, _coerce(key, file_config[key]))
                    sources[key] = "config file"

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            setattr(config, key, _coerce(key, os.environ[env_var]))
            sources[key] = "environment"

    for key, value in (overrides or {}).items():
        if key in CONFIG_KEYS and value is not None:
            setattr(config, key, _coerce(key, value))
            sources[key] = "flag"

    config._sources = sources
    return config
