"""Per-invocation state shared by CLI commands through ``ctx.obj``."""

from __future__ import annotations

import sys
from typing import Any

import click

from .config import CLIConfig, load_config
from .resolver import Environment
from .secrets import SecretsFile
from .shared.paths import CUSTOM_GROUPS_DIR
from .store import DefinitionStore, load_store


def config_from_params(params: dict[str, Any]) -> CLIConfig:
    """Build the configuration from the root command's parsed options."""
    return load_config(
        {
            "servers_file": params.get("servers_file"),
            "groups_file": params.get("groups_file"),
            "secrets_file": params.get("secrets_file"),
            "log_level": params.get("log_level"),
            "log_file": params.get("log_file"),
            "log_format": params.get("log_format"),
        }
    )


def load_definitions(config: CLIConfig) -> DefinitionStore:
    return load_store(config.servers_file, config.groups_file, CUSTOM_GROUPS_DIR)


def get_config(ctx: click.Context) -> CLIConfig:
    return ctx.obj["config"]


def get_store(ctx: click.Context) -> DefinitionStore:
    """Definition store, loaded once per invocation."""
    if ctx.obj.get("store") is None:
        ctx.obj["store"] = load_definitions(get_config(ctx))
    return ctx.obj["store"]


def get_secrets(ctx: click.Context) -> SecretsFile:
    return SecretsFile(get_config(ctx).secrets_file)


def get_environment(ctx: click.Context) -> Environment:
    """Process environment with secrets-file values filling unset variables."""
    return Environment.from_os().with_defaults(get_secrets(ctx).load())


def is_interactive(ctx: click.Context) -> bool:
    """Whether missing values may be asked for on the terminal."""
    return not ctx.obj.get("non_interactive", False) and sys.stdin.isatty()
