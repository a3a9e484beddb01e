"""Interactive prompting for required environment variables."""

from __future__ import annotations

import click

from .errors import MissingEnvironmentError
from .resolver import Environment, Resolution, find_unresolved, resolve
from .secrets import SecretsFile
from .shared.logging import get_logger
from .store.models import ServerDefinition

logger = get_logger(__name__)


def _missing_error(server: ServerDefinition, missing: list[str]) -> MissingEnvironmentError:
    return MissingEnvironmentError(
        f"Required environment variable(s) not set for {server.name}: {', '.join(missing)}. "
        f"Set them in your environment or run 'mcptool setup {server.name}'.",
        server=server.name,
        missing=list(missing),
    )


def prompt_for_values(names: list[str]) -> dict[str, str]:
    """Ask for a value per name (hidden input). Empty answers are dropped."""
    answers: dict[str, str] = {}
    for name in names:
        value = click.prompt(
            f"Enter value for {name}", default="", show_default=False, hide_input=True
        )
        if value:
            answers[name] = value
        else:
            click.echo(f"No value provided for {name}", err=True)
    return answers


def ensure_required_env(
    server: ServerDefinition,
    environment: Environment,
    secrets: SecretsFile | None = None,
    interactive: bool = True,
) -> tuple[Resolution, Environment]:
    """Resolve a server's environment, asking for missing required values.

    Answers are saved to the secrets file (when given) and layered onto
    the environment.

    Returns:
        The final resolution and the environment it was resolved against

    Raises:
        MissingEnvironmentError: If required variables are still unresolved
    """
    resolution = resolve(server.env, environment, server.required_env)
    if resolution.ok:
        return resolution, environment

    if not interactive:
        raise _missing_error(server, resolution.unresolved)

    click.echo(f"Required environment variable(s) not set for {server.name}:", err=True)
    for name in resolution.unresolved:
        click.echo(f"  - {name}", err=True)

    if not click.confirm("Would you like to enter these values now?", default=True):
        raise _missing_error(server, resolution.unresolved)

    answers = prompt_for_values(resolution.unresolved)
    if answers:
        if secrets is not None:
            secrets.update(answers)
            click.echo(f"Saved {', '.join(answers)} to {secrets.path}")
        environment = environment.with_overrides(answers)

    resolution = resolve(server.env, environment, server.required_env)
    # a typed answer fills its own entry even when the template names another variable
    for name, value in answers.items():
        if name in resolution.env and not resolution.env[name]:
            resolution.env[name] = value
    resolution.unresolved = find_unresolved(server.required_env, resolution.env, environment)
    if not resolution.ok:
        raise _missing_error(server, resolution.unresolved)
    return resolution, environment


def setup_wizard(server: ServerDefinition, environment: Environment, secrets: SecretsFile) -> dict[str, str]:
    """Walk through a server's required variables and store them.

    Values already present in the environment or the secrets file are only
    replaced when the user asks to.

    Returns:
        The values written to the secrets file
    """
    if not server.required_env:
        click.echo(f"Server '{server.name}' does not require any environment variables.")
        return {}

    click.echo(f"Setup wizard for '{server.name}'")
    click.echo("This will help you configure the required environment variables.")
    click.echo()

    stored = secrets.load()
    updates: dict[str, str] = {}
    for name in server.required_env:
        if environment.get(name):
            click.echo(f"Environment variable {name} is already set in your environment.")
        elif stored.get(name):
            click.echo(f"Environment variable {name} is already set in {secrets.path}.")
        else:
            updates.update(prompt_for_values([name]))
            continue
        if click.confirm("Do you want to update it?", default=False):
            updates.update(prompt_for_values([name]))

    if updates:
        secrets.update(updates)
        for name in updates:
            click.echo(f"Updated {name} in {secrets.path}")
    logger.info("setup_complete", server=server.name, updated=sorted(updates))
    return updates
