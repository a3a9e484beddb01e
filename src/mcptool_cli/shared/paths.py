"""Path management for mcptool.

Manages the ~/.mcptool/ directory structure and the default locations of the
definition store, secrets file and launcher logs.
"""

from pathlib import Path

# Base directory for all mcptool data
MCPTOOL_DIR = Path.home() / ".mcptool"

# Default definition store files
DEFAULT_SERVERS_FILE = MCPTOOL_DIR / "servers.json"
DEFAULT_GROUPS_FILE = MCPTOOL_DIR / "groups.json"

# Secrets file lives in the working directory, like a project .env
DEFAULT_SECRETS_FILE = Path(".env.mcp")

# Background launch logs and PID files
LOG_DIR = MCPTOOL_DIR / "logs"

# User-created groups (one JSON file per group)
CUSTOM_GROUPS_DIR = MCPTOOL_DIR / "custom_groups"

# Shell integration script
AUTOLOADER_FILE = Path.home() / ".mcp_autoloader.zsh"

