"""Definition Store Reader - load server and group definitions.

Server definitions come from a servers file (a mapping of name to
definition), groups from a groups file and from user-created custom group
files. Both files may be JSON or YAML: when the configured ``.json`` path
does not exist, its ``.yaml`` then ``.yml`` sibling is used.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..errors import FileAccessError, NotFoundError, ValidationError
from ..shared.logging import get_logger
from .models import GroupDefinition, ServerDefinition

logger = get_logger(__name__)


def candidate_paths(path: Path) -> list[Path]:
    """Paths tried for a store file, in order."""
    if path.suffix == ".json":
        return [path, path.with_suffix(".yaml"), path.with_suffix(".yml")]
    return [path]


def find_store_file(path: Path) -> Path | None:
    """Return the first existing candidate for ``path``, if any."""
    for candidate in candidate_paths(path):
        if candidate.is_file():
            return candidate
    return None


def read_structured_file(path: Path) -> Any:
    """Parse a JSON or YAML file.

    Raises:
        FileAccessError: If the file cannot be read
        ValidationError: If the content does not parse
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FileAccessError(f"Cannot read {path}: {e.strerror or e}", path=path) from e

    if path.suffix in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValidationError(f"{path} is not a valid YAML file: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not a valid JSON file: {e}") from e


def _parse_servers(data: Any, path: Path) -> dict[str, ServerDefinition]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain an object mapping server names to definitions")

    servers: dict[str, ServerDefinition] = {}
    for name, definition in data.items():
        if not isinstance(definition, dict):
            raise ValidationError(
                f"Server '{name}' in {path} must be an object",
                problems=[f"{name}: definition is not an object"],
            )
        servers[str(name)] = ServerDefinition.from_dict(str(name), definition)
    return servers


def _parse_group_entry(name: str, entry: Any, path: Path) -> GroupDefinition:
    if isinstance(entry, list):
        return GroupDefinition(name=name, servers=[str(s) for s in entry])
    if isinstance(entry, dict) and isinstance(entry.get("servers", []), list):
        description = entry.get("description")
        return GroupDefinition(
            name=name,
            servers=[str(s) for s in entry.get("servers", [])],
            description=str(description) if description is not None else None,
        )
    raise ValidationError(f"Group '{name}' in {path} must list its servers")


def _parse_groups(data: Any, path: Path) -> dict[str, GroupDefinition]:
    groups: dict[str, GroupDefinition] = {}
    if data is None:
        return groups

    # List form: [{"name": ..., "servers": [...], "description": ...}]
    if isinstance(data, list):
        for entry in data:
            if not isinstance(entry, dict) or "name" not in entry:
                raise ValidationError(f"Every group in {path} needs a 'name'")
            name = str(entry["name"])
            groups[name] = _parse_group_entry(name, entry, path)
        return groups

    # Mapping form: {"name": [...]} or {"name": {"servers": [...]}}
    if isinstance(data, dict):
        for name, entry in data.items():
            groups[str(name)] = _parse_group_entry(str(name), entry, path)
        return groups

    raise ValidationError(f"{path} must contain a list or an object of groups")


def load_custom_groups(directory: Path) -> dict[str, GroupDefinition]:
    """Load user-created groups from ``<directory>/<name>.json`` files.

    Unreadable or malformed files are skipped with a warning.
    """
    groups: dict[str, GroupDefinition] = {}
    if not directory.is_dir():
        return groups

    for group_file in sorted(directory.glob("*.json")):
        try:
            data = json.loads(group_file.read_text(encoding="utf-8"))
            group = _parse_group_entry(group_file.stem, data, group_file)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("custom_group_skipped", path=str(group_file), error=str(e))
            continue
        group.custom = True
        groups[group.name] = group
    return groups


class DefinitionStore:
    """In-memory view of the server and group definitions.

    Group names take precedence over server names when both exist.
    """

    def __init__(
        self,
        servers: dict[str, ServerDefinition],
        groups: dict[str, GroupDefinition] | None = None,
        servers_path: Path | None = None,
        groups_path: Path | None = None,
    ):
        self.servers = servers
        self.groups = groups or {}
        self.servers_path = servers_path
        self.groups_path = groups_path

    @property
    def server_names(self) -> list[str]:
        return sorted(self.servers)

    @property
    def group_names(self) -> list[str]:
        return sorted(self.groups)

    def has_server(self, name: str) -> bool:
        return name in self.servers

    def has_group(self, name: str) -> bool:
        return name in self.groups

    def is_known(self, name: str) -> bool:
        return self.has_group(name) or self.has_server(name)

    def get_server(self, name: str) -> ServerDefinition:
        """Get a server definition by name.

        Raises:
            NotFoundError: If no server has that name
        """
        try:
            return self.servers[name]
        except KeyError:
            raise NotFoundError(
                f"Unknown server: {name}. Use 'mcptool list' to see available servers",
                name=name,
                kind="server",
            ) from None

    def get_validated_server(self, name: str) -> ServerDefinition:
        """Get a server definition that has a command to launch.

        Raises:
            NotFoundError: If no server has that name
            ValidationError: If the definition has no command
        """
        server = self.get_server(name)
        if not server.command:
            raise ValidationError(
                f"No command defined for server '{name}'",
                problems=[f"{name}: missing required 'command' field"],
            )
        return server

    def get_group(self, name: str) -> GroupDefinition:
        """Get a group by name.

        Raises:
            NotFoundError: If no group has that name
        """
        try:
            return self.groups[name]
        except KeyError:
            raise NotFoundError(f"Unknown group: {name}", name=name, kind="group") from None

    def expand(self, name: str) -> list[str]:
        """Server names a target refers to: the members of a group, or itself.

        Raises:
            NotFoundError: If the name is neither a group nor a server
        """
        if self.has_group(name):
            return list(self.groups[name].servers)
        if self.has_server(name):
            return [name]
        raise NotFoundError(
            f"Unknown server or group: {name}. "
            "Use 'mcptool list' to see available servers and groups",
            name=name,
        )

    def groups_containing(self, server: str) -> list[str]:
        """Names of the groups that list ``server``."""
        return [name for name in self.group_names if server in self.groups[name].servers]


def load_store(
    servers_file: Path,
    groups_file: Path | None = None,
    custom_groups_dir: Path | None = None,
) -> DefinitionStore:
    """Load definitions from disk.

    Args:
        servers_file: Servers file path (JSON, or YAML sibling)
        groups_file: Optional groups file path (JSON, or YAML sibling)
        custom_groups_dir: Optional directory of custom group files

    Raises:
        FileAccessError: If the servers file does not exist or is unreadable
        ValidationError: If a file does not parse or has the wrong shape
    """
    servers_path = find_store_file(servers_file)
    if servers_path is None:
        raise FileAccessError(
            f"Servers file not found at '{servers_file}' or as YAML. "
            "Specify a path with --servers-file or set MCP_SERVERS_FILE.",
            path=servers_file,
        )
    servers = _parse_servers(read_structured_file(servers_path), servers_path)
    logger.debug("servers_loaded", path=str(servers_path), count=len(servers))

    groups: dict[str, GroupDefinition] = {}
    if custom_groups_dir is not None:
        groups.update(load_custom_groups(custom_groups_dir))

    groups_path = find_store_file(groups_file) if groups_file is not None else None
    if groups_path is not None:
        groups.update(_parse_groups(read_structured_file(groups_path), groups_path))
        logger.debug("groups_loaded", path=str(groups_path), count=len(groups))
    elif groups_file is not None:
        logger.info("groups_file_missing", path=str(groups_file))

    return DefinitionStore(
        servers=servers,
        groups=groups,
        servers_path=servers_path,
        groups_path=groups_path,
    )
