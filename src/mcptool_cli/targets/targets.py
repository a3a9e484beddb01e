"""Add targets - where ``mcptool add`` puts a server definition.

Targets form a closed set selected once from the command line:

- ``claude``: registered through the Claude CLI (``claude mcp add``)
- ``cursor``: merged into Cursor's ``.cursor/mcp.json`` (project or user)
- ``<file>.json``: merged into an arbitrary JSON file under ``servers``
"""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from ..errors import ExternalToolMissingError, TargetWriteError, ValidationError
from ..shared.logging import get_logger
from .merger import MCP_SERVERS_KEY, SERVERS_KEY, MergeResult, merge_server_entry, remove_target

logger = get_logger(__name__)

Scope = Literal["project", "user"]

CLAUDE_EXECUTABLE = "claude"


class TargetKind(Enum):
    """Kinds of add targets."""

    CLAUDE = "claude"
    CURSOR = "cursor"
    JSON = "json"


@dataclass
class AddResult:
    """Outcome of adding one server to a target."""

    server_name: str
    target: str
    merge: MergeResult | None = None
    command: list[str] | None = None


class Target(ABC):
    """Common interface of all add targets."""

    kind: TargetKind

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable description of the target."""

    @abstractmethod
    def add(self, server_name: str, entry: dict[str, Any]) -> AddResult:
        """Add a fully resolved server entry to the target."""

    @abstractmethod
    def reset(self) -> bool:
        """Discard existing target content (``--overwrite``).

        Returns:
            True if something was removed
        """


class FileTarget(Target):
    """Target backed by a JSON document merged in place."""

    container_key: str

    def __init__(self, path: Path):
        self.path = path

    @property
    def label(self) -> str:
        return str(self.path)

    def add(self, server_name: str, entry: dict[str, Any]) -> AddResult:
        merge = merge_server_entry(self.path, self.container_key, server_name, entry)
        return AddResult(server_name=server_name, target=self.label, merge=merge)

    def reset(self) -> bool:
        return remove_target(self.path)


class JsonFileTarget(FileTarget):
    """Arbitrary JSON file; servers live under ``servers``."""

    kind = TargetKind.JSON
    container_key = SERVERS_KEY


class CursorTarget(FileTarget):
    """Cursor MCP config; servers live under ``mcpServers``."""

    kind = TargetKind.CURSOR
    container_key = MCP_SERVERS_KEY

    def __init__(self, scope: Scope = "project", home: Path | None = None, cwd: Path | None = None):
        self.scope = scope
        if scope == "user":
            base = home or Path.home()
        else:
            base = cwd or Path(".")
        super().__init__(base / ".cursor" / "mcp.json")

    @property
    def label(self) -> str:
        return f"Cursor ({self.scope}: {self.path})"


class ClaudeTarget(Target):
    """Claude MCP registry, managed through the ``claude`` CLI."""

    kind = TargetKind.CLAUDE

    def __init__(self, scope: Scope = "project", executable: str = CLAUDE_EXECUTABLE):
        self.scope = scope
        self.executable = executable

    @property
    def label(self) -> str:
        return f"Claude MCP (scope: {self.scope})"

    def build_command(self, server_name: str, entry: dict[str, Any]) -> list[str]:
        """Argument vector for ``claude mcp add``."""
        command = [self.executable, "mcp", "add", "--scope", self.scope, server_name]
        command.append(str(entry.get("command", "")))
        command.extend(str(arg) for arg in entry.get("args") or [] if str(arg))
        env = entry.get("env") or {}
        for key, value in env.items():
            if key and value:
                command.extend(["-e", f"{key}={value}"])
        return command

    def add(self, server_name: str, entry: dict[str, Any]) -> AddResult:
        executable = shutil.which(self.executable)
        if executable is None:
            raise ExternalToolMissingError(
                f"'{self.executable}' command not found. "
                "Please ensure Claude CLI is installed and in your PATH.",
                tool=self.executable,
            )

        command = self.build_command(server_name, entry)
        logger.info("claude_mcp_add", server=server_name, scope=self.scope)
        try:
            completed = subprocess.run(command, check=False)
        except OSError as e:
            raise TargetWriteError(f"Failed to execute {self.executable}: {e}") from e
        if completed.returncode != 0:
            raise TargetWriteError(
                f"'{self.executable} mcp add' failed with exit code {completed.returncode}. "
                "Check your Claude CLI installation."
            )
        return AddResult(server_name=server_name, target=self.label, command=command)

    def reset(self) -> bool:
        # Registrations live inside Claude; there is no file to discard
        return False


def resolve_target(target: str, scope: Scope = "project") -> Target:
    """Select the target for a ``mcptool add`` argument.

    Raises:
        ValidationError: If the argument is not a known keyword or ``.json`` path
    """
    if target == TargetKind.CLAUDE.value:
        return ClaudeTarget(scope)
    if target == TargetKind.CURSOR.value:
        return CursorTarget(scope)
    if target.endswith(".json"):
        return JsonFileTarget(Path(target).expanduser())
    raise ValidationError(
        f"Invalid target '{target}'. Must be 'claude', 'cursor', or a filename ending in '.json'."
    )
