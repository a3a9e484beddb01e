"""Add command - put server definitions into Claude, Cursor or a JSON file."""

from __future__ import annotations

import click

from ..context import get_environment, get_secrets, get_store, is_interactive
from ..errors import MCPToolError
from ..formatters import print_add_result, print_error, print_warning
from ..prompts import ensure_required_env
from ..resolver import Environment
from ..targets import AddResult, ClaudeTarget, Target, TargetKind, resolve_target


def add_server(
    ctx: click.Context, target: Target, name: str, environment: Environment
) -> tuple[AddResult, Environment]:
    """Resolve one server and add it to ``target``."""
    server = get_store(ctx).get_validated_server(name)
    resolution, environment = ensure_required_env(
        server, environment, get_secrets(ctx), is_interactive(ctx)
    )
    return target.add(name, server.to_entry(resolution.env)), environment


@click.command("add")
@click.argument("name")
@click.argument("target")
@click.option("--project", "scope", flag_value="project", default=True, help="Project scope [default]")
@click.option("--user", "scope", flag_value="user", help="User scope (~/.cursor/mcp.json, claude --scope user)")
@click.option("--overwrite", is_flag=True, help="Discard the target file's existing content first")
@click.pass_context
def add_command(ctx: click.Context, name: str, target: str, scope: str, overwrite: bool) -> None:
    """Add a server (or every server of a group) to a target.

    TARGET is 'claude', 'cursor' or a file name ending in '.json'. Env
    templates are resolved before the definition is written.

    \b
    Examples:
      mcptool add github claude --user
      mcptool add github cursor
      mcptool add dev-tools myconfig.json --overwrite
    """
    store = get_store(ctx)
    members = store.expand(name)
    add_target = resolve_target(target, scope)  # type: ignore[arg-type]

    if scope == "user" and add_target.kind is TargetKind.JSON:
        print_warning("--user scope is only applicable for the 'claude' and 'cursor' targets. Ignored.")

    if overwrite:
        if isinstance(add_target, ClaudeTarget):
            print_warning("--overwrite option is not applicable for the 'claude' target. Ignored.")
        add_target.reset()

    environment = get_environment(ctx)

    if not store.has_group(name):
        click.echo(f"Attempting to add server '{name}' to {add_target.label}...")
        result, _ = add_server(ctx, add_target, name, environment)
        print_add_result(result)
        return

    click.echo(f"Adding group '{name}' ({len(members)} servers) to {add_target.label}...")
    failed: list[str] = []
    for member in members:
        try:
            result, environment = add_server(ctx, add_target, member, environment)
        except MCPToolError as e:
            print_error(f"{member}: {e.message}")
            failed.append(member)
            continue
        print_add_result(result)

    if failed:
        click.echo(f"{len(failed)} of {len(members)} servers in '{name}' could not be added: {', '.join(failed)}")
        ctx.exit(1)
    click.echo(f"All servers in group '{name}' added to {add_target.label}")
