"""Error taxonomy for mcptool.

Every handled failure is an MCPToolError. The CLI prints the message to
stderr and exits with ``exit_code``; nothing is retried automatically.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class MCPToolError(Exception):
    """Base error class for mcptool errors."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


@dataclass
class NotFoundError(MCPToolError):
    """Unknown server or group name."""

    name: str = ""
    kind: str = "server or group"


@dataclass
class ValidationError(MCPToolError):
    """Definition missing a command, malformed structure, or bad argument."""

    problems: list[str] = field(default_factory=list)


@dataclass
class MissingEnvironmentError(MCPToolError):
    """Required environment variables are unset and were not supplied."""

    server: str = ""
    missing: list[str] = field(default_factory=list)


@dataclass
class FileAccessError(MCPToolError):
    """A file could not be read or written, or a directory created."""

    path: Path | None = None


@dataclass
class TargetReadError(FileAccessError):
    """The target document exists but cannot be read."""


@dataclass
class TargetWriteError(FileAccessError):
    """The target document (or its directory) cannot be written."""


@dataclass
class BackupError(FileAccessError):
    """Backing up a malformed target document failed."""


@dataclass
class SerializationError(MCPToolError):
    """The merged document could not be serialized to valid JSON."""


@dataclass
class MalformedTargetError(MCPToolError):
    """The target document is not a valid JSON object.

    Raised while parsing a target and recovered by the merger (backup and
    reset); never surfaced to the user as a failure.
    """

    path: Path | None = None


@dataclass
class ExternalToolMissingError(MCPToolError):
    """A required external executable is not installed or not on PATH."""

    tool: str = ""
