"""Shared test fixtures for mcptool tests.

Every test runs with an isolated HOME and working directory so nothing
touches the real ~/.mcptool, ~/.cursor or ./.env.mcp.
"""

import importlib
import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from mcptool_cli import config as config_module
from mcptool_cli import context as context_module
from mcptool_cli.shared.logging import configure_logging
from mcptool_cli.store import load_store

# The package re-exports the main() function under the same name
main_module = importlib.import_module("mcptool_cli.main")

MCPTOOL_ENV_VARS = (
    "MCP_SERVERS_FILE",
    "MCP_GROUPS_FILE",
    "MCPTOOL_SECRETS_FILE",
    "MCPTOOL_LOG_DIR",
    "MCPTOOL_LOG_LEVEL",
    "MCPTOOL_LOG_FILE",
    "MCPTOOL_LOG_FORMAT",
    "MCPTOOL_NON_INTERACTIVE",
    "GITHUB_TOKEN",
)

SERVERS: dict[str, Any] = {
    "github": {
        "command": "npx",
        "args": ["-y", "@modelcontextprotocol/server-github"],
        "env": {"GITHUB_TOKEN": "${GITHUB_TOKEN}"},
        "required_env": ["GITHUB_TOKEN"],
        "description": "GitHub repositories and issues",
    },
    "filesystem": {
        "command": "npx",
        "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
        "description": "Local file access",
    },
    "notes": {
        "command": "notes-server",
        "args": ["--root", "/srv/notes"],
        "env": {"NOTES_HOME": "${HOME}/notes", "MODE": "readonly"},
        "description": "Markdown notes",
    },
}

GROUPS: list[dict[str, Any]] = [
    {"name": "dev", "servers": ["github", "filesystem"], "description": "Development tools"},
    {"name": "docs", "servers": ["notes"]},
]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME, the config file and custom groups at a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    for var in MCPTOOL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    data_dir = home / ".mcptool"
    monkeypatch.setattr(config_module, "get_config_path", lambda: data_dir / "config.yaml")
    monkeypatch.setattr(context_module, "CUSTOM_GROUPS_DIR", data_dir / "custom_groups")
    monkeypatch.setattr(main_module, "CUSTOM_GROUPS_DIR", data_dir / "custom_groups")
    monkeypatch.setenv("MCP_SERVERS_FILE", str(data_dir / "servers.json"))
    monkeypatch.setenv("MCP_GROUPS_FILE", str(data_dir / "groups.json"))
    monkeypatch.setenv("MCPTOOL_LOG_DIR", str(data_dir / "logs"))

    configure_logging(level="warning")
    return home


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def servers_file(tmp_path) -> Path:
    path = tmp_path / "servers.json"
    path.write_text(json.dumps(SERVERS, indent=2))
    return path


@pytest.fixture
def groups_file(tmp_path) -> Path:
    path = tmp_path / "groups.json"
    path.write_text(json.dumps(GROUPS, indent=2))
    return path


@pytest.fixture
def store(servers_file, groups_file):
    return load_store(servers_file, groups_file)


@pytest.fixture
def store_args(servers_file, groups_file) -> list[str]:
    """Global CLI options pointing at the test store."""
    return ["--servers-file", str(servers_file), "--groups-file", str(groups_file)]
