"""Secrets file - previously entered environment variable values.

A ``KEY="value"`` file (``.env.mcp`` by default) readable only by its owner.
It can be sourced by a shell, and mcptool consults it as a fallback for
variables missing from the process environment. It is never required.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from .errors import FileAccessError
from .shared.logging import get_logger

logger = get_logger(__name__)

SECRETS_FILE_MODE = 0o600

LINE_PATTERN = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\")
    for char in ('"', "$", "`"):
        escaped = escaped.replace(char, "\\" + char)
    return f'"{escaped}"'


def _unquote(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        return re.sub(r"\\(.)", r"\1", raw[1:-1])
    if len(raw) >= 2 and raw[0] == raw[-1] == "'":
        return raw[1:-1]
    return raw


class SecretsFile:
    """Read and update a ``KEY="value"`` secrets file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> dict[str, str]:
        """Load all values. Missing file means no values.

        Raises:
            FileAccessError: If the file exists but cannot be read
        """
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileAccessError(
                f"Cannot read secrets file {self.path}: {e.strerror or e}", path=self.path
            ) from e

        values: dict[str, str] = {}
        for line in text.splitlines():
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            match = LINE_PATTERN.match(line)
            if match:
                values[match.group(1)] = _unquote(match.group(2))
        return values

    def update(self, values: dict[str, str]) -> None:
        """Set values, replacing existing lines in place and appending new ones.

        Comments and unrelated lines are kept. The file is replaced
        atomically and always ends up with owner-only permissions.

        Raises:
            FileAccessError: If the file cannot be read or written
        """
        if not values:
            return

        lines: list[str] = []
        if self.path.exists():
            try:
                lines = self.path.read_text(encoding="utf-8").splitlines()
            except OSError as e:
                raise FileAccessError(
                    f"Cannot read secrets file {self.path}: {e.strerror or e}", path=self.path
                ) from e

        pending = dict(values)
        for index, line in enumerate(lines):
            match = LINE_PATTERN.match(line)
            if match and match.group(1) in pending:
                name = match.group(1)
                lines[index] = f"{name}={_quote(pending.pop(name))}"
        for name, value in pending.items():
            lines.append(f"{name}={_quote(value)}")

        self._write("\n".join(lines) + "\n")
        logger.info("secrets_updated", path=str(self.path), names=sorted(values))

    def _write(self, content: str) -> None:
        directory = self.path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=str(directory), prefix=".secrets.", encoding="utf-8"
            ) as tf:
                tmp_name = tf.name
                tf.write(content)
            os.chmod(tmp_name, SECRETS_FILE_MODE)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise FileAccessError(
                f"Cannot write secrets file {self.path}: {e.strerror or e}", path=self.path
            ) from e
