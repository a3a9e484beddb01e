"""CLI output formatting helpers.

All formatters work with store models and print through ``click.echo``.
"""

import json
import shlex
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from .launcher import DetachedProcess, TerminalLaunch
from .store import DefinitionStore, GroupDefinition, ServerDefinition, ValidationReport
from .targets import AddResult

SEPARATOR = "-" * 35

err_console = Console(stderr=True, soft_wrap=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_server_list(store: DefinitionStore) -> None:
    """Print all server and group names, sorted."""
    click.echo("Available servers:")
    if store.server_names:
        for name in store.server_names:
            click.echo(f"  {name}")
    else:
        click.echo("  No servers defined")

    click.echo()
    click.echo("Available groups:")
    if store.group_names:
        for name in store.group_names:
            click.echo(f"  {name}")
    else:
        click.echo("  No groups defined")


def print_server_info(server: ServerDefinition, verbose: bool = False) -> None:
    """Print a server's description and command line.

    Args:
        server: Server to describe
        verbose: Also show env templates and required variables
    """
    click.echo(SEPARATOR)
    click.echo(f"Server: {server.name}")
    click.echo(f"Description: {server.display_description}")
    click.echo(f"Command: {shlex.join([server.command, *server.args])}")

    if verbose:
        click.echo()
        click.echo("Environment Variables (Templates):")
        if server.env:
            for key, value in server.env.items():
                click.echo(f"  {key} = {value}")
        else:
            click.echo("  None")

        click.echo()
        click.echo("Required Environment Variables:")
        if server.required_env:
            for name in server.required_env:
                click.echo(f"  {name}")
        else:
            click.echo("  None")
    click.echo(SEPARATOR)


def print_group_info(store: DefinitionStore, group: GroupDefinition, verbose: bool = False) -> None:
    """Print a group's members; verbose prints full info per member."""
    if not group.servers:
        click.echo(f"Warning: Group '{group.name}' exists but contains no servers.")
        return

    if verbose:
        click.echo(f"--- Group: {group.name} ---")
        for name in group.servers:
            if store.has_server(name):
                print_server_info(store.get_server(name), verbose=True)
            else:
                click.echo(f"  - {name}: WARNING - Server not defined in config")
        click.echo(f"--- End Group: {group.name} ---")
        return

    click.echo(f"Group: {group.name}")
    if group.description:
        click.echo(f"Description: {group.description}")
    click.echo("Servers in this group:")
    for name in group.servers:
        if store.has_server(name):
            click.echo(f"  - {name}: {store.get_server(name).display_description}")
        else:
            click.echo(f"  - {name}: WARNING - Server not defined in config")


def definition_json(store: DefinitionStore, name: str) -> str:
    """Compact JSON of a server's raw definition, or an array for a group.

    Group members missing from the store are left out.
    """
    data: Any
    if store.has_group(name):
        data = [
            store.get_server(member).raw
            for member in store.get_group(name).servers
            if store.has_server(member)
        ]
    else:
        data = store.get_server(name).raw
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def print_validation_result(file: str, errors: list[str], warnings: list[str]) -> None:
    """Print validation results.

    Args:
        file: File being validated
        errors: List of error messages
        warnings: List of warning messages
    """
    click.echo(f"Validating: {file}\n")

    if errors:
        click.echo("ERRORS:")
        for e in errors:
            click.echo(f"  ✗ {e}")

    if warnings:
        click.echo("WARNINGS:")
        for w in warnings:
            click.echo(f"  ⚠ {w}")

    if not errors and not warnings:
        click.echo("✓ Validation passed")
    elif errors:
        click.echo(f"\nValidation failed with {len(errors)} errors and {len(warnings)} warnings")
    else:
        click.echo(f"\nValidation passed with {len(warnings)} warnings")


def print_validation_report(store: DefinitionStore, report: ValidationReport) -> None:
    files = [str(p) for p in (store.servers_path, store.groups_path) if p is not None]
    print_validation_result(", ".join(files), report.errors, report.warnings)


def print_add_result(result: AddResult) -> None:
    """Print the outcome of adding a server to a target."""
    merge = result.merge
    if merge is None:
        click.echo(f"Successfully added {result.server_name} to {result.target}")
        return

    if merge.backup_path is not None:
        print_warning(f"{merge.path} was not valid JSON. Backed up to {merge.backup_path}")
    if merge.migrated_from is not None:
        print_warning(f"Migrated '{merge.migrated_from}' entries in {merge.path}")
    if merge.created:
        click.echo(f"Created new configuration file at {merge.path}")
    click.echo(f"Successfully added/updated {result.server_name} in {result.target}")


def print_server_banner(server: ServerDefinition) -> None:
    """Header printed before a foreground run."""
    click.echo(f"Starting server: {server.name}")
    click.echo(f"Description: {server.display_description}")
    click.echo(f"Command: {shlex.join([server.command, *server.args])}")
    click.echo(SEPARATOR)


def print_launch_result(result: DetachedProcess | TerminalLaunch) -> None:
    if isinstance(result, DetachedProcess):
        click.echo(f"Started {result.name} in background (PID {result.pid})")
        click.echo(f"  Logs: {result.log_file}")
        click.echo(f"  PID file: {result.pid_file}")
    else:
        click.echo(f"Launched server: {result.name} in a new terminal window ({result.emulator})")
