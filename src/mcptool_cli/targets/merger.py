"""Config Merger - merge a server entry into a third-party JSON config.

The target document is a JSON object holding a container key ("servers" or
"mcpServers") that maps server names to resolved server entries. Merging
never leaves the target partially written: the new document is written to a
temporary file in the same directory, verified, and renamed over the target.
"""

from __future__ import annotations

import copy
import json
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from ..errors import (
    BackupError,
    MalformedTargetError,
    SerializationError,
    TargetReadError,
    TargetWriteError,
)
from ..shared.logging import get_logger

logger = get_logger(__name__)

SERVERS_KEY = "servers"
MCP_SERVERS_KEY = "mcpServers"

# Container key -> legacy key migrated into it when the container is missing
LEGACY_CONTAINER_KEYS = {
    MCP_SERVERS_KEY: SERVERS_KEY,
}

NEW_FILE_MODE = 0o600


@dataclass
class MergeResult:
    """Outcome of a merge into a target document."""

    path: Path
    server_name: str
    created: bool = False
    replaced: bool = False
    migrated_from: str | None = None
    backup_path: Path | None = None
    salvaged: bool = False


def backup_path_for(target_path: Path, now: datetime | None = None) -> Path:
    """Backup location for a malformed target: ``<path>.bak.<timestamp>``."""
    timestamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return target_path.with_name(f"{target_path.name}.bak.{timestamp}")


def parse_document(text: str, container_key: str, path: Path | None = None) -> dict[str, Any]:
    """Parse a target document.

    Raises:
        MalformedTargetError: If the text is not a JSON object, or its
            container key holds something other than an object
    """
    try:
        document = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as e:
        raise MalformedTargetError(f"Invalid JSON: {e}", path=path) from e

    if not isinstance(document, dict):
        raise MalformedTargetError("Top-level JSON value is not an object", path=path)
    if container_key in document and not isinstance(document[container_key], dict):
        raise MalformedTargetError(f"'{container_key}' is not an object", path=path)
    return document


def salvage_container(text: str, container_key: str) -> dict[str, Any] | None:
    """Try to recover the container object from a malformed document.

    Looks for ``"<container_key>"`` followed by a colon and decodes the JSON
    object that starts there. The rest of the document is discarded.

    Returns:
        The container mapping, or None if nothing decodable was found
    """
    decoder = json.JSONDecoder()
    needle = json.dumps(container_key)
    start = 0
    while True:
        index = text.find(needle, start)
        if index < 0:
            return None
        start = index + len(needle)
        rest = text[start:].lstrip()
        if not rest.startswith(":"):
            continue
        value_text = rest[1:].lstrip()
        try:
            value, _ = decoder.raw_decode(value_text)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value


def serialize_document(document: dict[str, Any]) -> str:
    """Serialize a document and check that it parses back.

    Raises:
        SerializationError: If the document cannot be represented as JSON
    """
    try:
        text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        json.loads(text)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize merged configuration: {e}") from e
    return text


def write_atomic(path: Path, content: str, mode: int) -> None:
    """Write ``content`` to ``path`` through a verified temp file and rename.

    Raises:
        SerializationError: If the written temp file does not parse
        TargetWriteError: If the temp file cannot be written or renamed
    """
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", delete=False, dir=str(path.parent), prefix=f".{path.name}.", encoding="utf-8"
        ) as tf:
            tmp_name = tf.name
            tf.write(content)
            tf.flush()
            os.fsync(tf.fileno())

        try:
            json.loads(Path(tmp_name).read_text(encoding="utf-8"))
        except ValueError as e:
            raise SerializationError(f"Generated configuration is not valid JSON: {e}") from e

        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise TargetWriteError(f"Cannot write {path}: {e.strerror or e}", path=path) from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def remove_target(path: Path) -> bool:
    """Delete a target document (``--overwrite``).

    Returns:
        True if a file was removed

    Raises:
        TargetWriteError: If the file exists but cannot be removed
    """
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as e:
        raise TargetWriteError(
            f"Failed to remove existing file {path} for overwrite: {e.strerror or e}",
            path=path,
        ) from e
    logger.info("target_removed", path=str(path))
    return True


def _recover_malformed(
    path: Path, text: str, container_key: str, error: MalformedTargetError, result: MergeResult
) -> dict[str, Any]:
    backup = backup_path_for(path)
    try:
        shutil.copy2(path, backup)
    except OSError as e:
        raise BackupError(
            f"Failed to back up invalid configuration {path} to {backup}: {e.strerror or e}",
            path=backup,
        ) from e
    result.backup_path = backup

    salvaged = salvage_container(text, container_key)
    if salvaged is not None:
        result.salvaged = True
    logger.warning(
        "target_malformed",
        path=str(path),
        error=error.message,
        backup=str(backup),
        salvaged=result.salvaged,
    )
    return {container_key: salvaged or {}}


def merge_server_entry(
    target_path: Path,
    container_key: str,
    server_name: str,
    entry: dict[str, Any],
    overwrite: bool = False,
) -> MergeResult:
    """Insert ``entry`` under ``document[container_key][server_name]``.

    - Absent target: created as ``{container_key: {}}`` with 0600 permissions
    - Legacy "servers" container in an "mcpServers" target: migrated
    - Unparsable target: backed up to ``<path>.bak.<timestamp>``, then reset
      (keeping a salvageable container object if one can be found)
    - An existing entry with the same name is replaced, not deep-merged
    - All other content is preserved

    Args:
        target_path: Target JSON file
        container_key: "servers" or "mcpServers"
        server_name: Key for the entry within the container
        entry: Fully resolved server entry
        overwrite: Delete the target first, discarding all prior content

    Returns:
        MergeResult describing what happened

    Raises:
        TargetReadError: Target exists but cannot be read
        TargetWriteError: Target or its directory cannot be written
        BackupError: Malformed target could not be backed up
        SerializationError: Merged document is not representable as JSON
    """
    result = MergeResult(path=target_path, server_name=server_name)

    if overwrite:
        remove_target(target_path)

    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise TargetWriteError(
            f"Could not create target directory {target_path.parent}: {e.strerror or e}",
            path=target_path.parent,
        ) from e

    mode = NEW_FILE_MODE
    if not target_path.exists():
        document: dict[str, Any] = {container_key: {}}
        result.created = True
    else:
        try:
            text = target_path.read_text(encoding="utf-8")
            mode = stat.S_IMODE(target_path.stat().st_mode)
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            raise TargetReadError(f"Cannot read {target_path}: {reason}", path=target_path) from e

        if not os.access(target_path, os.W_OK):
            raise TargetWriteError(f"No permission to write to {target_path}", path=target_path)

        try:
            document = parse_document(text, container_key, target_path)
        except MalformedTargetError as e:
            document = _recover_malformed(target_path, text, container_key, e, result)

    if container_key not in document:
        legacy_key = LEGACY_CONTAINER_KEYS.get(container_key)
        legacy = document.get(legacy_key) if legacy_key else None
        if isinstance(legacy, dict):
            logger.warning(
                "target_container_migrated",
                path=str(target_path),
                old_key=legacy_key,
                new_key=container_key,
            )
            document[container_key] = document.pop(legacy_key)
            result.migrated_from = legacy_key
        else:
            document[container_key] = {}

    container = document[container_key]
    result.replaced = server_name in container
    container[server_name] = copy.deepcopy(entry)

    write_atomic(target_path, serialize_document(document), mode)
    logger.info(
        "target_merged",
        path=str(target_path),
        container=container_key,
        server=server_name,
        created=result.created,
    )
    return result
