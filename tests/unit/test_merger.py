"""Unit tests for mcptool_cli.targets.merger."""

import json
import os
import stat
from datetime import datetime
from unittest.mock import patch

import pytest

from mcptool_cli.errors import BackupError, MalformedTargetError, SerializationError
from mcptool_cli.targets.merger import (
    MCP_SERVERS_KEY,
    SERVERS_KEY,
    backup_path_for,
    merge_server_entry,
    parse_document,
    remove_target,
    salvage_container,
)

ENTRY = {"command": "npx", "args": ["-y", "pkg"], "env": {"TOKEN": "abc"}}


def read_json(path):
    return json.loads(path.read_text())


@pytest.mark.cli_unit
class TestMergeServerEntry:
    """Tests for merging an entry into a target document."""

    def test_creates_absent_target(self, tmp_path):
        target = tmp_path / "nested" / "target.json"

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert result.created
        assert read_json(target) == {"servers": {"foo": ENTRY}}

    def test_new_target_is_owner_only(self, tmp_path):
        target = tmp_path / "target.json"
        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_existing_mode_preserved(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text('{"servers": {}}')
        os.chmod(target, 0o644)

        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert stat.S_IMODE(target.stat().st_mode) == 0o644

    def test_preserves_unrelated_entries_and_keys(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text(
            json.dumps({"theme": "dark", "servers": {"bar": {"command": "bar"}}})
        )

        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        document = read_json(target)
        assert document["theme"] == "dark"
        assert document["servers"]["bar"] == {"command": "bar"}
        assert document["servers"]["foo"] == ENTRY

    def test_replaces_existing_entry_fully(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text(
            json.dumps({"servers": {"foo": {"command": "old", "extra": True}}})
        )

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert result.replaced
        assert read_json(target)["servers"]["foo"] == ENTRY

    def test_merge_is_idempotent(self, tmp_path):
        target = tmp_path / "target.json"
        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)
        first = target.read_text()

        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert target.read_text() == first

    def test_adds_missing_container(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text('{"other": 1}')

        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert read_json(target) == {"other": 1, "servers": {"foo": ENTRY}}

    def test_migrates_legacy_container(self, tmp_path):
        target = tmp_path / "mcp.json"
        target.write_text(json.dumps({"servers": {"bar": {"command": "bar"}}}))

        result = merge_server_entry(target, MCP_SERVERS_KEY, "foo", ENTRY)

        document = read_json(target)
        assert result.migrated_from == SERVERS_KEY
        assert "servers" not in document
        assert document["mcpServers"] == {"bar": {"command": "bar"}, "foo": ENTRY}

    def test_servers_target_keeps_mcp_servers_container(self, tmp_path):
        target = tmp_path / "claude_desktop_config.json"
        existing = {"mcpServers": {"bar": {"command": "bar"}}}
        target.write_text(json.dumps(existing))

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        document = read_json(target)
        assert result.migrated_from is None
        assert document["mcpServers"] == existing["mcpServers"]
        assert document["servers"] == {"foo": ENTRY}

    def test_malformed_target_backed_up_and_reset(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text("{not json")

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        backups = sorted(tmp_path.glob("target.json.bak.*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "{not json"
        assert result.backup_path == backups[0]
        assert not result.salvaged
        assert read_json(target) == {"servers": {"foo": ENTRY}}

    def test_malformed_target_salvages_container(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text('{"servers": {"bar": {"command": "bar"}}, "broken": ')

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert result.salvaged
        assert read_json(target) == {"servers": {"bar": {"command": "bar"}, "foo": ENTRY}}

    def test_non_object_document_treated_as_malformed(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text("[1, 2, 3]")

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert result.backup_path is not None
        assert read_json(target) == {"servers": {"foo": ENTRY}}

    def test_empty_file_treated_as_empty_document(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text("")

        result = merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert result.backup_path is None
        assert read_json(target) == {"servers": {"foo": ENTRY}}

    def test_overwrite_discards_prior_content(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text(json.dumps({"theme": "dark", "servers": {"bar": {}}}))

        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY, overwrite=True)

        assert read_json(target) == {"servers": {"foo": ENTRY}}

    def test_output_format(self, tmp_path):
        target = tmp_path / "target.json"
        merge_server_entry(target, SERVERS_KEY, "foo", {"command": "x"})

        text = target.read_text()
        assert text.endswith("}\n")
        assert '\n  "servers": {' in text

    def test_no_temp_files_left_behind(self, tmp_path):
        target_dir = tmp_path / "target"
        target = target_dir / "target.json"
        merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert [p.name for p in target_dir.iterdir()] == ["target.json"]

    def test_unserializable_entry_leaves_target_untouched(self, tmp_path):
        target_dir = tmp_path / "target"
        target_dir.mkdir()
        target = target_dir / "target.json"
        target.write_text('{"servers": {}}')

        with pytest.raises(SerializationError):
            merge_server_entry(target, SERVERS_KEY, "foo", {"command": object()})

        assert target.read_text() == '{"servers": {}}'
        assert [p.name for p in target_dir.iterdir()] == ["target.json"]

    def test_backup_failure_raises(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text("{broken")

        with patch("mcptool_cli.targets.merger.shutil.copy2", side_effect=OSError(28, "No space")):
            with pytest.raises(BackupError):
                merge_server_entry(target, SERVERS_KEY, "foo", ENTRY)

        assert target.read_text() == "{broken"


@pytest.mark.cli_unit
class TestParseDocument:
    """Tests for parse_document."""

    def test_parses_object(self):
        assert parse_document('{"servers": {}}', SERVERS_KEY) == {"servers": {}}

    def test_rejects_invalid_json(self):
        with pytest.raises(MalformedTargetError):
            parse_document("{", SERVERS_KEY)

    def test_rejects_non_object_container(self):
        with pytest.raises(MalformedTargetError):
            parse_document('{"servers": []}', SERVERS_KEY)


@pytest.mark.cli_unit
class TestSalvageContainer:
    """Tests for salvage_container."""

    def test_finds_container_object(self):
        text = '{"mcpServers": {"a": {"command": "x"}}, oops'
        assert salvage_container(text, MCP_SERVERS_KEY) == {"a": {"command": "x"}}

    def test_skips_non_object_values(self):
        assert salvage_container('{"servers": [1], ', SERVERS_KEY) is None

    def test_nothing_to_salvage(self):
        assert salvage_container("garbage", SERVERS_KEY) is None


@pytest.mark.cli_unit
class TestBackupsAndRemoval:
    """Tests for backup naming and target removal."""

    def test_backup_path_format(self, tmp_path):
        target = tmp_path / "target.json"
        backup = backup_path_for(target, datetime(2024, 5, 6, 7, 8, 9))
        assert backup.name == "target.json.bak.20240506070809"

    def test_remove_target(self, tmp_path):
        target = tmp_path / "target.json"
        target.write_text("{}")

        assert remove_target(target)
        assert not target.exists()
        assert not remove_target(target)
