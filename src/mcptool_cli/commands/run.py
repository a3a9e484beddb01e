"""Run command - launch a server or every server of a group."""

from __future__ import annotations

import click

from ..context import get_config, get_environment, get_secrets, get_store, is_interactive
from ..errors import MCPToolError
from ..formatters import print_error, print_launch_result, print_server_banner, print_warning
from ..launcher import (
    DetachedProcess,
    GroupMemberLaunch,
    LaunchMode,
    LaunchRequest,
    TerminalLaunch,
    launch,
    launch_group,
)
from ..prompts import ensure_required_env
from ..resolver import Environment


def prepare_launch(ctx: click.Context, name: str, environment: Environment) -> tuple[LaunchRequest, Environment]:
    """Validate a server and resolve its environment for launching."""
    server = get_store(ctx).get_validated_server(name)
    resolution, environment = ensure_required_env(
        server, environment, get_secrets(ctx), is_interactive(ctx)
    )
    return LaunchRequest.from_server(server, resolution.env), environment


def run_server(ctx: click.Context, name: str, background: bool) -> int:
    """Run a single server. Returns the exit status for the CLI."""
    request, environment = prepare_launch(ctx, name, get_environment(ctx))

    if background:
        print_launch_result(launch(request, LaunchMode.BACKGROUND, environment, get_config(ctx).log_dir))
        return 0

    print_server_banner(get_store(ctx).get_server(name))
    return launch(request, LaunchMode.FOREGROUND, environment)


def run_group(ctx: click.Context, name: str, background: bool) -> int:
    """Run every member of a group.

    Members that fail validation or lack environment values are reported and
    skipped; the rest are still launched.
    """
    group = get_store(ctx).get_group(name)
    if not group.servers:
        print_warning(f"Group '{name}' exists but contains no servers.")
        return 0

    mode = LaunchMode.BACKGROUND if background else LaunchMode.TERMINAL
    if background:
        click.echo(f"Running group '{name}' servers in background...")
    else:
        click.echo(f"Running group '{name}' servers in separate terminals...")

    environment = get_environment(ctx)
    requests: list[LaunchRequest] = []
    failed: list[str] = []
    for member in group.servers:
        try:
            request, environment = prepare_launch(ctx, member, environment)
        except MCPToolError as e:
            print_error(f"{member}: {e.message}")
            failed.append(member)
            continue
        requests.append(request)

    def report(outcome: GroupMemberLaunch) -> None:
        if outcome.error is not None:
            print_error(f"{outcome.name}: {outcome.error.message}")
            failed.append(outcome.name)
        elif isinstance(outcome.result, (DetachedProcess, TerminalLaunch)):
            print_launch_result(outcome.result)

    launch_group(requests, mode, environment, get_config(ctx).log_dir, on_launch=report)

    if failed:
        click.echo(f"{len(failed)} of {len(group.servers)} servers in '{name}' failed: {', '.join(failed)}")
        return 1
    if background:
        click.echo("All servers have been started in background mode.")
        click.echo(f"Logs are available in: {get_config(ctx).log_dir}")
    else:
        click.echo("All servers have been launched in separate terminal windows.")
    return 0


@click.command("run")
@click.argument("name")
@click.option("--background", "--bg", "background", is_flag=True, help="Run detached with logs")
@click.pass_context
def run_command(ctx: click.Context, name: str, background: bool) -> None:
    """Run a server or all servers of a group.

    A single server runs in the current terminal; group members each open in
    a new terminal window. With --background everything runs detached and
    logs to the log directory.

    \b
    Examples:
      mcptool run github
      mcptool run github --bg
      mcptool run dev-tools --background
    """
    store = get_store(ctx)
    if store.has_group(name):
        ctx.exit(run_group(ctx, name, background))
    store.expand(name)
    ctx.exit(run_server(ctx, name, background))
