"""Definition validation.

Reports structural errors (which make a definition unusable) and softer
warnings (which only hint at an incomplete definition).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .loader import DefinitionStore
from .models import ServerDefinition


@dataclass
class ValidationReport:
    """Errors and warnings collected for one server, group or the store."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def extend(self, other: ValidationReport) -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def passed(self, strict: bool = False) -> bool:
        """True if there are no errors (and no warnings in strict mode)."""
        if self.errors:
            return False
        return not (strict and self.warnings)


def validate_server(server: ServerDefinition) -> ValidationReport:
    """Validate a single server definition."""
    report = ValidationReport()
    raw = server.raw
    name = server.name

    command = raw.get("command")
    if not isinstance(command, str) or not command.strip():
        report.errors.append(f"{name}: missing required 'command' field")

    if "args" in raw:
        if not isinstance(raw["args"], list):
            report.errors.append(f"{name}: 'args' field is not an array")
    else:
        report.warnings.append(f"{name}: no 'args' field (may be intentional)")

    env = raw.get("env")
    if "env" in raw and not isinstance(env, dict):
        report.errors.append(f"{name}: 'env' field is not an object")
        env = None

    if "required_env" in raw:
        required = raw["required_env"]
        if not isinstance(required, list):
            report.errors.append(f"{name}: 'required_env' field is not an array")
        else:
            templates = env if isinstance(env, dict) else {}
            for var in required:
                if var not in templates:
                    report.warnings.append(
                        f"{name}: requires env var '{var}' but has no template for it in 'env'"
                    )

    if "description" not in raw:
        report.warnings.append(f"{name}: no 'description' field")

    return report


def validate_store(store: DefinitionStore) -> ValidationReport:
    """Validate every server and check that groups reference known servers."""
    report = ValidationReport()
    for name in store.server_names:
        report.extend(validate_server(store.servers[name]))

    for group_name in store.group_names:
        group = store.groups[group_name]
        if not group.servers:
            report.warnings.append(f"group {group_name}: contains no servers")
        for member in group.servers:
            if not store.has_server(member):
                report.warnings.append(
                    f"group {group_name}: references unknown server '{member}'"
                )
    return report
