"""Targets for ``mcptool add`` and the JSON config merger behind them."""

from .merger import (
    MCP_SERVERS_KEY,
    SERVERS_KEY,
    MergeResult,
    backup_path_for,
    merge_server_entry,
    remove_target,
    salvage_container,
)
from .targets import (
    AddResult,
    ClaudeTarget,
    CursorTarget,
    JsonFileTarget,
    Target,
    TargetKind,
    resolve_target,
)

__all__ = [
    "AddResult",
    "ClaudeTarget",
    "CursorTarget",
    "JsonFileTarget",
    "MCP_SERVERS_KEY",
    "MergeResult",
    "SERVERS_KEY",
    "Target",
    "TargetKind",
    "backup_path_for",
    "merge_server_entry",
    "remove_target",
    "resolve_target",
    "salvage_container",
]
