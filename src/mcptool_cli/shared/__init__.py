"""Shared modules for mcptool.

This module provides functionality used by every command:
- Paths (data directory, default store locations)
- Logging (structlog configuration)
"""

from .logging import configure_logging, get_logger
from .paths import (
    AUTOLOADER_FILE,
    CUSTOM_GROUPS_DIR,
    DEFAULT_GROUPS_FILE,
    DEFAULT_SECRETS_FILE,
    DEFAULT_SERVERS_FILE,
    LOG_DIR,
    MCPTOOL_DIR,
)

__all__ = [
    # Paths
    "MCPTOOL_DIR",
    "DEFAULT_SERVERS_FILE",
    "DEFAULT_GROUPS_FILE",
    "DEFAULT_SECRETS_FILE",
    "LOG_DIR",
    "CUSTOM_GROUPS_DIR",
    "AUTOLOADER_FILE",
    # Logging
    "configure_logging",
    "get_logger",
]
