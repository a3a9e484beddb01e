"""Unit tests for definition validation."""

import pytest

from mcptool_cli.store import DefinitionStore, GroupDefinition, ServerDefinition
from mcptool_cli.store.validation import ValidationReport, validate_server, validate_store


def server(name="s", **data):
    return ServerDefinition.from_dict(name, data)


@pytest.mark.cli_unit
class TestValidateServer:
    """Tests for validate_server."""

    def test_complete_definition_passes(self):
        report = validate_server(
            server(
                command="npx",
                args=[],
                env={"TOKEN": "${TOKEN}"},
                required_env=["TOKEN"],
                description="ok",
            )
        )
        assert report.errors == []
        assert report.warnings == []

    def test_missing_command(self):
        report = validate_server(server(args=[], description="d"))
        assert report.errors == ["s: missing required 'command' field"]

    def test_structural_errors(self):
        report = validate_server(
            server(command="x", args="a b", env=["A"], required_env="A", description="d")
        )
        assert "s: 'args' field is not an array" in report.errors
        assert "s: 'env' field is not an object" in report.errors
        assert "s: 'required_env' field is not an array" in report.errors

    def test_warnings(self):
        report = validate_server(server(command="x", required_env=["TOKEN"]))

        assert report.errors == []
        assert "s: no 'args' field (may be intentional)" in report.warnings
        assert "s: requires env var 'TOKEN' but has no template for it in 'env'" in report.warnings
        assert "s: no 'description' field" in report.warnings


@pytest.mark.cli_unit
class TestValidateStore:
    """Tests for validate_store."""

    def test_group_references(self):
        store = DefinitionStore(
            servers={"a": server("a", command="a", args=[], description="d")},
            groups={
                "g": GroupDefinition("g", ["a", "ghost"]),
                "empty": GroupDefinition("empty", []),
            },
        )

        report = validate_store(store)

        assert report.errors == []
        assert "group g: references unknown server 'ghost'" in report.warnings
        assert "group empty: contains no servers" in report.warnings

    def test_fixture_store_is_clean(self, store):
        report = validate_store(store)
        assert report.errors == []
        assert report.warnings == []
        assert report.passed(strict=True)


@pytest.mark.cli_unit
class TestValidationReport:
    """Tests for ValidationReport."""

    def test_passed(self):
        assert ValidationReport().passed(strict=True)
        assert not ValidationReport(errors=["x"]).passed()
        assert ValidationReport(warnings=["w"]).passed()
        assert not ValidationReport(warnings=["w"]).passed(strict=True)
