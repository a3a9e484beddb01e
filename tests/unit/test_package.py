"""Unit tests for the package entry points."""

import importlib

import pytest

import mcptool_cli
from mcptool_cli import context


@pytest.mark.cli_unit
class TestPackage:
    """Tests for the top-level package."""

    def test_main_function_exported(self):
        """Test the package exposes the console entry point."""
        assert callable(mcptool_cli.main)
        assert mcptool_cli.__version__

    def test_custom_groups_dir_isolated(self, isolated_home):
        """Test both modules using CUSTOM_GROUPS_DIR see the temp home."""
        expected = isolated_home / ".mcptool" / "custom_groups"
        main_module = importlib.import_module("mcptool_cli.main")

        assert main_module.CUSTOM_GROUPS_DIR == expected
        assert context.CUSTOM_GROUPS_DIR == expected
