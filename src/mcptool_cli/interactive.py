"""Interactive menu - questionary front end over the regular commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import questionary
from questionary import Choice

from .store import DefinitionStore

# Menu entries: (action key, title)
MENU_ACTIONS = [
    ("run_server", "Run a server"),
    ("run_server_background", "Run a server in background"),
    ("server_info", "Get server info"),
    ("run_group", "Run a group in separate windows"),
    ("run_group_background", "Run a group in background"),
    ("group_info", "Get group info"),
    ("setup", "Setup server environment"),
    ("docs", "View documentation"),
    ("add", "Add to Claude/Cursor"),
    ("create_group", "Create custom group"),
    ("exit", "Exit"),
]

INTEGRATION_TARGETS = [
    (("claude", "project"), "Add to Claude (project scope)"),
    (("claude", "user"), "Add to Claude (user scope)"),
    (("cursor", "project"), "Add to Cursor (project scope)"),
    (("cursor", "user"), "Add to Cursor (user scope)"),
]


def _ask(question: questionary.Question) -> Any:
    answer = question.ask()
    if answer is None:
        raise KeyboardInterrupt
    return answer


def choose_action() -> str:
    """Main menu. Raises KeyboardInterrupt on cancel."""
    return _ask(
        questionary.select(
            "Choose an option:",
            choices=[Choice(title=title, value=key) for key, title in MENU_ACTIONS],
        )
    )


def choose_name(message: str, names: list[str]) -> str | None:
    """Pick one name; None when there is nothing to pick from."""
    if not names:
        return None
    return _ask(questionary.select(message, choices=names))


def choose_target() -> tuple[str, str]:
    """Pick an add target and its scope."""
    return _ask(
        questionary.select(
            "Choose integration target:",
            choices=[Choice(title=title, value=value) for value, title in INTEGRATION_TARGETS],
        )
    )


def choose_servers(store: DefinitionStore) -> list[str]:
    """Checkbox selection of servers for a custom group."""
    choices = [
        Choice(title=f"{name:<20s} {store.get_server(name).display_description}", value=name)
        for name in store.server_names
    ]
    return _ask(questionary.checkbox("Select servers for the group:", choices=choices))


def ask_group_name() -> str:
    return _ask(
        questionary.text(
            "Group name:",
            validate=lambda text: bool(text.strip()) or "Group name cannot be empty",
        )
    ).strip()


def confirm_unknown_servers(unknown: list[str]) -> bool:
    return _ask(
        questionary.confirm(
            f"Servers not in your config: {', '.join(unknown)}. Create the group anyway?",
            default=False,
        )
    )


def pause() -> None:
    questionary.press_any_key_to_continue().ask()


def run_menu(handlers: dict[str, Callable[[], None]]) -> None:
    """Show the main menu until the user exits or cancels.

    Args:
        handlers: Action key to callable; every action in MENU_ACTIONS except
            "exit" must have one
    """
    while True:
        try:
            action = choose_action()
        except KeyboardInterrupt:
            return
        if action == "exit":
            return
        try:
            handlers[action]()
        except KeyboardInterrupt:
            continue
