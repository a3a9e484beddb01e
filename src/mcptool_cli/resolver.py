"""Variable Resolver - resolve environment templates against a snapshot.

Template values are either a whole-value reference (``$NAME`` or
``${NAME}``), substituted with the variable's value, or a literal string in
which every ``${NAME}`` substring is interpolated. Nothing is ever passed to
a shell. Names that are not valid identifiers are left untouched.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"

WHOLE_REFERENCE = re.compile(rf"^\$(?:\{{(?P<braced>{IDENTIFIER})\}}|(?P<bare>{IDENTIFIER}))$")
BRACED_REFERENCE = re.compile(rf"\$\{{({IDENTIFIER})\}}")


class Environment(Mapping[str, str]):
    """Immutable snapshot of environment variables.

    Passed explicitly to the resolver and the launcher so neither reads or
    mutates ``os.environ`` behind the caller's back.
    """

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values: dict[str, str] = dict(values or {})

    @classmethod
    def from_os(cls) -> Environment:
        """Snapshot the current process environment."""
        return cls(os.environ)

    def with_defaults(self, defaults: Mapping[str, str]) -> Environment:
        """New snapshot where ``defaults`` fill in variables that are unset."""
        return Environment({**defaults, **self._values})

    def with_overrides(self, overrides: Mapping[str, str]) -> Environment:
        """New snapshot where ``overrides`` replace existing values."""
        return Environment({**self._values, **overrides})

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Environment({len(self._values)} variables)"


@dataclass
class Resolution:
    """Result of resolving an environment template map."""

    env: dict[str, str] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every required variable resolved to a non-empty value."""
        return not self.unresolved


def resolve_value(template: Any, environment: Mapping[str, str]) -> str:
    """Resolve a single template value.

    Args:
        template: Template string (non-strings are converted with ``str``)
        environment: Variables available for substitution

    Returns:
        The resolved string; unset variables become empty strings
    """
    text = template if isinstance(template, str) else str(template)

    match = WHOLE_REFERENCE.match(text)
    if match:
        name = match.group("braced") or match.group("bare")
        return environment.get(name, "")

    return BRACED_REFERENCE.sub(lambda m: environment.get(m.group(1), ""), text)


def find_unresolved(
    required: Iterable[str],
    resolved: Mapping[str, str],
    environment: Mapping[str, str],
) -> list[str]:
    """Required names with no non-empty value, in their given order.

    A name with a template is judged by its resolved value alone; the
    environment only counts for names without one.
    """
    unresolved: list[str] = []
    for name in required:
        if not name or name in unresolved:
            continue
        value = resolved[name] if name in resolved else environment.get(name)
        if value:
            continue
        unresolved.append(name)
    return unresolved


def resolve(
    templates: Mapping[str, Any],
    environment: Mapping[str, str],
    required: Iterable[str] = (),
) -> Resolution:
    """Resolve an environment template map.

    Args:
        templates: Variable name to template value
        environment: Snapshot to resolve against
        required: Names that must end up with a non-empty value

    Returns:
        Resolution with the resolved map and the unresolved required names
    """
    resolved = {key: resolve_value(value, environment) for key, value in templates.items()}
    return Resolution(env=resolved, unresolved=find_unresolved(required, resolved, environment))
