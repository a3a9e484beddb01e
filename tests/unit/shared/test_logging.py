"""Unit tests for mcptool_cli.shared.logging module."""

import json

import pytest

from mcptool_cli.shared.logging import configure_logging, get_logger


@pytest.mark.cli_unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_lines_to_file(self, tmp_path):
        """Test events are written as JSON to a log file."""
        log_file = tmp_path / "mcptool.log"
        configure_logging(level="info", log_file=log_file, json_output=True)

        get_logger("mcptool_cli.test").info("server_started", server="notes")

        event = json.loads(log_file.read_text().splitlines()[-1])
        assert event["event"] == "server_started"
        assert event["server"] == "notes"
        assert event["level"] == "info"

    def test_level_filters_events(self, tmp_path):
        """Test events below the configured level are dropped."""
        log_file = tmp_path / "mcptool.log"
        configure_logging(level="warning", log_file=log_file)

        get_logger("mcptool_cli.test").info("quiet")
        get_logger("mcptool_cli.test").warning("loud")

        text = log_file.read_text()
        assert "quiet" not in text
        assert "loud" in text

    def test_unknown_level_defaults_to_warning(self, tmp_path):
        log_file = tmp_path / "mcptool.log"
        configure_logging(level="chatty", log_file=log_file)

        get_logger("mcptool_cli.test").info("hidden")

        assert "hidden" not in log_file.read_text()
