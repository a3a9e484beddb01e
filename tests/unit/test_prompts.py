"""Unit tests for interactive environment prompting."""

from unittest.mock import patch

import pytest

from mcptool_cli.errors import MissingEnvironmentError
from mcptool_cli.prompts import ensure_required_env, setup_wizard
from mcptool_cli.resolver import Environment
from mcptool_cli.secrets import SecretsFile
from mcptool_cli.store import ServerDefinition


@pytest.fixture
def github(store):
    return store.get_server("github")


@pytest.fixture
def secrets(tmp_path):
    return SecretsFile(tmp_path / ".env.mcp")


@pytest.mark.cli_unit
class TestEnsureRequiredEnv:
    """Tests for ensure_required_env."""

    def test_already_resolved(self, github):
        with patch("mcptool_cli.prompts.click.confirm") as mock_confirm:
            resolution, _ = ensure_required_env(github, Environment({"GITHUB_TOKEN": "abc"}))

        assert resolution.env == {"GITHUB_TOKEN": "abc"}
        mock_confirm.assert_not_called()

    def test_non_interactive_fails(self, github):
        with pytest.raises(MissingEnvironmentError) as exc_info:
            ensure_required_env(github, Environment(), interactive=False)

        assert exc_info.value.missing == ["GITHUB_TOKEN"]
        assert "mcptool setup github" in exc_info.value.message

    def test_prompted_values_saved(self, github, secrets):
        with (
            patch("mcptool_cli.prompts.click.confirm", return_value=True),
            patch("mcptool_cli.prompts.click.prompt", return_value="typed") as mock_prompt,
        ):
            resolution, environment = ensure_required_env(github, Environment(), secrets)

        assert resolution.env == {"GITHUB_TOKEN": "typed"}
        assert environment["GITHUB_TOKEN"] == "typed"
        assert secrets.load().get("GITHUB_TOKEN") == "typed"
        assert mock_prompt.call_args[1]["hide_input"] is True

    def test_answer_fills_entry_with_other_template(self, secrets):
        server = ServerDefinition.from_dict(
            "svc", {"command": "svc", "env": {"TOKEN": "${MY_TOKEN}"}, "required_env": ["TOKEN"]}
        )
        with (
            patch("mcptool_cli.prompts.click.confirm", return_value=True),
            patch("mcptool_cli.prompts.click.prompt", return_value="typed"),
        ):
            resolution, _ = ensure_required_env(server, Environment({"TOKEN": "stale"}), secrets)

        assert resolution.env == {"TOKEN": "typed"}

    def test_declined(self, github, secrets):
        with patch("mcptool_cli.prompts.click.confirm", return_value=False):
            with pytest.raises(MissingEnvironmentError):
                ensure_required_env(github, Environment(), secrets)
        assert not secrets.path.exists()

    def test_empty_answer_still_missing(self, github, secrets):
        with (
            patch("mcptool_cli.prompts.click.confirm", return_value=True),
            patch("mcptool_cli.prompts.click.prompt", return_value=""),
        ):
            with pytest.raises(MissingEnvironmentError):
                ensure_required_env(github, Environment(), secrets)


@pytest.mark.cli_unit
class TestSetupWizard:
    """Tests for setup_wizard."""

    def test_nothing_required(self, store, secrets, capsys):
        assert setup_wizard(store.get_server("notes"), Environment(), secrets) == {}
        assert "does not require any environment variables" in capsys.readouterr().out

    def test_prompts_for_unset(self, github, secrets):
        with patch("mcptool_cli.prompts.click.prompt", return_value="t0ken"):
            updates = setup_wizard(github, Environment(), secrets)

        assert updates == {"GITHUB_TOKEN": "t0ken"}
        assert secrets.load().get("GITHUB_TOKEN") == "t0ken"

    def test_keeps_existing_value(self, github, secrets):
        secrets.update({"GITHUB_TOKEN": "old"})
        with (
            patch("mcptool_cli.prompts.click.confirm", return_value=False),
            patch("mcptool_cli.prompts.click.prompt") as mock_prompt,
        ):
            updates = setup_wizard(github, Environment(), secrets)

        assert updates == {}
        mock_prompt.assert_not_called()
        assert secrets.load().get("GITHUB_TOKEN") == "old"

    def test_replaces_existing_value(self, github, secrets):
        with (
            patch("mcptool_cli.prompts.click.confirm", return_value=True),
            patch("mcptool_cli.prompts.click.prompt", return_value="new"),
        ):
            updates = setup_wizard(github, Environment({"GITHUB_TOKEN": "env"}), secrets)

        assert updates == {"GITHUB_TOKEN": "new"}
