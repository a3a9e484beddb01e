"""Definition store data model."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ServerDefinition:
    """A named record describing how to launch one external server."""

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    required_env: list[str] = field(default_factory=list)
    description: str | None = None

    # Definition exactly as read from the store (key order, extra keys)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> ServerDefinition:
        """Build a definition from a store mapping.

        Malformed fields are normalised leniently here; validation reports
        them separately.
        """
        command = data.get("command")
        args = data.get("args")
        env = data.get("env")
        required_env = data.get("required_env")
        description = data.get("description")
        return cls(
            name=name,
            command=str(command) if command is not None else "",
            args=[str(a) for a in args] if isinstance(args, list) else [],
            env={str(k): v for k, v in env.items()} if isinstance(env, dict) else {},
            required_env=(
                [str(v) for v in required_env] if isinstance(required_env, list) else []
            ),
            description=str(description) if description is not None else None,
            raw=copy.deepcopy(data),
        )

    @property
    def display_description(self) -> str:
        return self.description or "No description"

    @property
    def display_command(self) -> str:
        """Command line for display purposes."""
        return " ".join([self.command, *self.args]).strip()

    def to_entry(self, resolved_env: dict[str, str] | None = None) -> dict[str, Any]:
        """Return the raw definition with its env values replaced.

        Args:
            resolved_env: Resolved environment values. When None the env
                templates are kept as written.
        """
        entry = copy.deepcopy(self.raw)
        if resolved_env is not None and "env" in entry:
            entry["env"] = dict(resolved_env)
        return entry


@dataclass
class GroupDefinition:
    """A named ordered list of server names."""

    name: str
    servers: list[str] = field(default_factory=list)
    description: str | None = None
    custom: bool = False
