"""CLI main entry point."""

import shutil
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import click

try:
    __version__ = version("mcptool")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Defined here to avoid circular import

from . import interactive as menu
from .commands.add import add_command
from .commands.run import run_command, run_group, run_server
from .config import LOG_FORMATS
from .context import config_from_params, get_environment, get_secrets, get_store, load_definitions
from .errors import MCPToolError, NotFoundError
from .formatters import (
    definition_json,
    print_error,
    print_group_info,
    print_server_info,
    print_server_list,
    print_validation_report,
)
from .generators import create_custom_group, generate_autoloader, generate_documentation
from .prompts import setup_wizard
from .shared.logging import configure_logging, get_logger
from .shared.paths import AUTOLOADER_FILE, CUSTOM_GROUPS_DIR
from .store import validate_store

logger = get_logger(__name__)

LOG_LEVELS = ["debug", "info", "warning", "error"]


class MCPToolGroup(click.Group):
    """Root command group.

    Prints handled errors as ``Error: <message>`` and treats an unknown
    command that names a server or group as ``info <name>``.
    """

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError:
            if args and not args[0].startswith("-") and self._is_definition(ctx, args[0]):
                return "info", self.get_command(ctx, "info"), args
            raise

    @staticmethod
    def _is_definition(ctx: click.Context, name: str) -> bool:
        try:
            return load_definitions(config_from_params(ctx.params)).is_known(name)
        except MCPToolError:
            return False

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except MCPToolError as e:
            logger.debug("command_failed", error_type=type(e).__name__, error=e.message)
            print_error(e.message)
            ctx.exit(e.exit_code)


@click.group(cls=MCPToolGroup)
@click.option("--servers-file", type=click.Path(), help="Servers file [env: MCP_SERVERS_FILE]")
@click.option("--groups-file", type=click.Path(), help="Groups file [env: MCP_GROUPS_FILE]")
@click.option("--secrets-file", type=click.Path(), help="Secrets file [env: MCPTOOL_SECRETS_FILE]")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Diagnostic log level [env: MCPTOOL_LOG_LEVEL]",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Write diagnostics to a file [env: MCPTOOL_LOG_FILE]",
)
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS, case_sensitive=False),
    help="Diagnostic log format [env: MCPTOOL_LOG_FORMAT]",
)
@click.option(
    "--non-interactive",
    is_flag=True,
    envvar="MCPTOOL_NON_INTERACTIVE",
    help="Never prompt; fail when values are missing",
)
@click.version_option(__version__, prog_name="mcptool")
@click.pass_context
def cli(
    ctx: click.Context,
    servers_file: str | None,
    groups_file: str | None,
    secrets_file: str | None,
    log_level: str | None,
    log_file: str | None,
    log_format: str | None,
    non_interactive: bool,
) -> None:
    """Manage MCP server definitions.

    List, inspect, run and validate server definitions, and add them to
    Claude, Cursor or any JSON config file. Both JSON and YAML store files
    are supported.
    """
    ctx.ensure_object(dict)
    config = config_from_params(ctx.params)
    configure_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_output=config.log_format == "json",
    )
    ctx.obj["config"] = config
    ctx.obj["non_interactive"] = non_interactive
    ctx.obj["store"] = None
    logger.debug(
        "config_loaded",
        servers_file=str(config.servers_file),
        source=config.get_source("servers_file"),
    )


cli.add_command(run_command)
cli.add_command(add_command)


@cli.command("list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List servers and groups."""
    print_server_list(get_store(ctx))


@cli.command()
@click.argument("name")
@click.option("-v", "--verbose", is_flag=True, help="Show env templates (full details for groups)")
@click.pass_context
def info(ctx: click.Context, name: str, verbose: bool) -> None:
    """Show information about a server or group."""
    store = get_store(ctx)
    if store.has_group(name):
        print_group_info(store, store.get_group(name), verbose)
        return
    store.expand(name)
    print_server_info(store.get_server(name), verbose)


@cli.command("json")
@click.argument("name")
@click.pass_context
def json_command(ctx: click.Context, name: str) -> None:
    """Output the JSON definition of a server (an array for a group)."""
    store = get_store(ctx)
    store.expand(name)
    click.echo(definition_json(store, name))


@cli.command()
@click.pass_context
def docs(ctx: click.Context) -> None:
    """Show Markdown documentation for all servers and groups."""
    click.echo(generate_documentation(get_store(ctx)), nl=False)


@cli.command()
@click.argument("name")
@click.pass_context
def setup(ctx: click.Context, name: str) -> None:
    """Enter a server's required environment variables into the secrets file."""
    if ctx.obj["non_interactive"]:
        raise MCPToolError("'setup' asks for values and cannot run with --non-interactive")
    server = get_store(ctx).get_server(name)
    setup_wizard(server, get_environment(ctx), get_secrets(ctx))


@cli.command()
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.pass_context
def validate(ctx: click.Context, strict: bool) -> None:
    """Validate all server and group definitions."""
    store = get_store(ctx)
    report = validate_store(store)
    print_validation_report(store, report)
    if not report.passed(strict):
        ctx.exit(1)


@cli.command()
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=AUTOLOADER_FILE,
    show_default=True,
    help="Where to write the script",
)
def autoloader(output: Path) -> None:
    """Generate a zsh script with an 'mcpt' alias and completion."""
    command = shutil.which("mcptool") or "mcptool"
    backup = generate_autoloader(output, command)
    if backup is not None:
        click.echo(f"Backed up existing autoloader to {backup}")
    click.echo(f"Autoloader file generated at: {output}")
    click.echo("To use it, add the following line to your shell configuration file (.zshrc):")
    click.echo(f"source {output}")


@cli.command("help")
@click.argument("command_name", required=False)
@click.pass_context
def help_command(ctx: click.Context, command_name: str | None) -> None:
    """Show help for mcptool or one of its commands."""
    root = ctx.find_root()
    if not command_name:
        click.echo(root.get_help())
        return

    command = cli.get_command(root, command_name)
    if command is None:
        raise NotFoundError(
            f"Unknown command '{command_name}'. Run 'mcptool help' to see all commands",
            name=command_name,
            kind="command",
        )
    with click.Context(command, info_name=command_name, parent=root) as sub_ctx:
        click.echo(command.get_help(sub_ctx))


def _menu_handlers(ctx: click.Context) -> dict[str, Callable[[], None]]:
    def action(func: Callable[[], None], pause: bool = True) -> Callable[[], None]:
        def wrapper() -> None:
            try:
                func()
            except MCPToolError as e:
                print_error(e.message)
            except click.exceptions.Exit:
                pass
            if pause:
                menu.pause()

        return wrapper

    def pick_server(message: str) -> str | None:
        return menu.choose_name(message, get_store(ctx).server_names)

    def pick_group(message: str) -> str | None:
        return menu.choose_name(message, get_store(ctx).group_names)

    def run_picked_server(background: bool) -> None:
        name = pick_server("Select a server to run:")
        if name:
            run_server(ctx, name, background)

    def run_picked_group(background: bool) -> None:
        name = pick_group("Select a group to run:")
        if name:
            run_group(ctx, name, background)

    def server_info() -> None:
        name = pick_server("Select a server:")
        if name:
            print_server_info(get_store(ctx).get_server(name), verbose=True)

    def group_info() -> None:
        name = pick_group("Select a group:")
        if name:
            store = get_store(ctx)
            print_group_info(store, store.get_group(name), verbose=True)

    def setup_server() -> None:
        name = pick_server("Select a server to configure:")
        if name:
            setup_wizard(get_store(ctx).get_server(name), get_environment(ctx), get_secrets(ctx))

    def add_to_target() -> None:
        target, scope = menu.choose_target()
        store = get_store(ctx)
        name = menu.choose_name("Choose a server or group to add:", store.group_names + store.server_names)
        if name:
            ctx.invoke(add_command, name=name, target=target, scope=scope, overwrite=False)

    def create_group() -> None:
        store = get_store(ctx)
        servers = menu.choose_servers(store)
        if not servers:
            click.echo("No servers selected.")
            return
        name = menu.ask_group_name()
        path = create_custom_group(name, servers, store, CUSTOM_GROUPS_DIR, menu.confirm_unknown_servers)
        click.echo(f"Created custom group file: {path}")
        ctx.obj["store"] = None

    return {
        "run_server": action(lambda: run_picked_server(False)),
        "run_server_background": action(lambda: run_picked_server(True)),
        "server_info": action(server_info),
        "run_group": action(lambda: run_picked_group(False)),
        "run_group_background": action(lambda: run_picked_group(True)),
        "group_info": action(group_info),
        "setup": action(setup_server),
        "docs": action(lambda: click.echo_via_pager(generate_documentation(get_store(ctx))), pause=False),
        "add": action(add_to_target),
        "create_group": action(create_group),
    }


@cli.command("interactive")
@click.pass_context
def interactive_command(ctx: click.Context) -> None:
    """Interactive menu for servers, groups and integrations."""
    if ctx.obj["non_interactive"]:
        raise MCPToolError("'interactive' cannot run with --non-interactive")
    get_store(ctx)
    menu.run_menu(_menu_handlers(ctx))
    click.echo("Exiting MCP Tool.")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
