"""Generators - documentation, shell integration and custom group files."""

from __future__ import annotations

import json
import re
import shlex
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from .errors import FileAccessError, ValidationError
from .shared.logging import get_logger
from .store import DefinitionStore

logger = get_logger(__name__)

GROUP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")

COMPLETION_COMMANDS = "list run info json add docs setup validate autoloader interactive help"

USAGE_INSTRUCTIONS = """\
## Usage Instructions

### Basic Commands

```bash
# List all available servers and groups
mcptool list

# Run a specific server
mcptool run server_name

# Run all servers in a group (in the background)
mcptool run group_name --background

# Get information about a server
mcptool info server_name

# Add a server to Claude MCP
mcptool add server_name claude [--project|--user]

# Add a server to Cursor MCP
mcptool add server_name cursor [--project|--user]

# Add a server to any JSON config file
mcptool add server_name config.json [--overwrite]

# Setup environment variables for a server
mcptool setup server_name
```

### Interactive Mode

Launch the interactive menu with:

```bash
mcptool interactive
```
"""

AUTOLOADER_TEMPLATE = """\
# MCP Tool Autoloader
# Auto-generated on @DATE@
# Source this file from your shell configuration (.zshrc)

alias mcpt=@COMMAND@

mcpt_list() {
  @COMMAND@ list "$@"
}

mcpt_run() {
  if [ -z "$1" ]; then
    echo "Usage: mcpt_run <server_name|group_name> [--background]"
    return 1
  fi
  @COMMAND@ run "$@"
}

mcpt_info() {
  if [ -z "$1" ]; then
    echo "Usage: mcpt_info <server_name|group_name> [-v|--verbose]"
    return 1
  fi
  @COMMAND@ info "$@"
}

mcpt_json() {
  if [ -z "$1" ]; then
    echo "Usage: mcpt_json <server_name|group_name>"
    return 1
  fi
  @COMMAND@ json "$@"
}

mcpt_add() {
  if [ -z "$2" ]; then
    echo "Usage: mcpt_add <server_name|group_name> <claude|cursor|file.json> [--project|--user] [--overwrite]"
    return 1
  fi
  @COMMAND@ add "$@"
}

mcpt_docs() {
  @COMMAND@ docs "$@"
}

mcpt_interactive() {
  @COMMAND@ interactive "$@"
}

mcpt_setup() {
  if [ -z "$1" ]; then
    echo "Usage: mcpt_setup <server_name>"
    return 1
  fi
  @COMMAND@ setup "$@"
}

_mcpt_completion() {
  local -a commands servers groups
  commands=(@COMMANDS@)
  servers=(${(f)"$(@COMMAND@ list 2>/dev/null | sed -n '/^Available servers:/,/^$/p' | grep '^  ' | sed 's/^  //')"})
  groups=(${(f)"$(@COMMAND@ list 2>/dev/null | sed -n '/^Available groups:/,$p' | grep '^  ' | sed 's/^  //')"})

  if [[ $CURRENT -eq 2 ]]; then
    _alternative \\
      'commands:command:compadd -a commands' \\
      'servers:server:compadd -a servers' \\
      'groups:group:compadd -a groups'
  elif [[ $CURRENT -eq 3 && ${words[2]} == (run|info|setup|json|add) ]]; then
    _alternative \\
      'servers:server:compadd -a servers' \\
      'groups:group:compadd -a groups'
  elif [[ $CURRENT -eq 3 && ${words[2]} == help ]]; then
    _alternative 'commands:command:compadd -a commands'
  elif [[ $CURRENT -eq 4 && ${words[2]} == add ]]; then
    _alternative 'targets:target:compadd claude cursor' 'files:file:_files -g "*.json"'
  elif [[ $CURRENT -ge 5 && ${words[2]} == add ]]; then
    _alternative 'options:option:compadd -- --project --user --overwrite'
  elif [[ $CURRENT -ge 4 && ${words[2]} == info ]]; then
    _alternative 'options:option:compadd -- -v --verbose'
  elif [[ $CURRENT -ge 4 && ${words[2]} == run ]]; then
    _alternative 'options:option:compadd -- --background --bg'
  fi
}

compdef _mcpt_completion @COMMAND@
compdef _mcpt_completion mcpt
"""


def generate_documentation(store: DefinitionStore, now: datetime | None = None) -> str:
    """Markdown documentation for every server and group."""
    generated = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "# MCP Servers Documentation",
        "",
        "This document provides comprehensive information about all available MCP servers.",
        f"Generated on {generated}",
        "",
        "## Available Servers",
        "",
    ]

    if not store.server_names:
        lines += ["No servers defined in the configuration file.", ""]
    for name in store.server_names:
        server = store.get_server(name)
        lines += [
            f"### {name}",
            "",
            f"**Description:** {server.display_description}",
            "",
            f"**Command:** `{server.display_command}`",
            "",
        ]
        if server.required_env:
            lines += ["**Required Environment Variables:**", ""]
            lines += [f"- `{var}`" for var in server.required_env]
            lines.append("")
        groups = store.groups_containing(name)
        if groups:
            lines += [f"**Groups:** {' '.join(groups)}", ""]
        lines += ["---", ""]

    lines += ["## Available Groups", ""]
    if not store.group_names:
        lines += ["No groups defined in the configuration file.", ""]
    for name in store.group_names:
        group = store.get_group(name)
        lines += [f"### {name}", ""]
        if group.description:
            lines += [group.description, ""]
        lines += ["**Servers in this group:**", ""]
        if not group.servers:
            lines.append("No servers in this group.")
        for member in sorted(group.servers):
            if store.has_server(member):
                lines.append(f"- **{member}**: {store.get_server(member).display_description}")
            else:
                lines.append(f"- **{member}**: *Server definition not found*")
        lines += ["", "---", ""]

    return "\n".join(lines) + "\n" + USAGE_INSTRUCTIONS


def render_autoloader(command: str, now: datetime | None = None) -> str:
    """zsh integration script calling ``command``."""
    generated = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return (
        AUTOLOADER_TEMPLATE.replace("@COMMAND@", shlex.quote(command))
        .replace("@COMMANDS@", COMPLETION_COMMANDS)
        .replace("@DATE@", generated)
    )


def generate_autoloader(output: Path, command: str) -> Path | None:
    """Write the autoloader script, backing up an existing one to ``.bak``.

    Returns:
        The backup path, if a previous file was backed up

    Raises:
        FileAccessError: If the script or its backup cannot be written
    """
    backup: Path | None = None
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.exists():
            backup = output.with_name(output.name + ".bak")
            shutil.copy2(output, backup)
        output.write_text(render_autoloader(command), encoding="utf-8")
    except OSError as e:
        raise FileAccessError(f"Cannot write autoloader {output}: {e.strerror or e}", path=output) from e

    logger.info("autoloader_written", path=str(output), backup=str(backup) if backup else None)
    return backup


def create_custom_group(
    name: str,
    servers: list[str],
    store: DefinitionStore,
    directory: Path,
    confirm_unknown: Callable[[list[str]], bool] | None = None,
) -> Path:
    """Save a custom group as ``<directory>/<name>.json``.

    Args:
        name: Group name (used as the file name)
        servers: Member server names, in order
        store: Store used to check that the members exist
        directory: Custom groups directory
        confirm_unknown: Called with unknown member names; returning False
            aborts. When omitted, unknown members are only logged.

    Raises:
        ValidationError: Bad group name, no members, or creation aborted
        FileAccessError: If the file cannot be written
    """
    if not GROUP_NAME_PATTERN.match(name):
        raise ValidationError(f"Invalid group name '{name}'")
    if not servers:
        raise ValidationError(f"Group '{name}' needs at least one server")

    unknown = [server for server in servers if not store.has_server(server)]
    if unknown:
        logger.warning("custom_group_unknown_servers", group=name, servers=unknown)
        if confirm_unknown is not None and not confirm_unknown(unknown):
            raise ValidationError("Group creation aborted.", problems=unknown)

    path = directory / f"{name}.json"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"servers": servers}, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise FileAccessError(f"Failed to create custom group file {path}: {e.strerror or e}", path=path) from e

    logger.info("custom_group_created", group=name, path=str(path))
    return path
