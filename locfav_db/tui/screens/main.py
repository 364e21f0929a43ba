"""Main menu screen: entry point for the TUI."""
from __future__ import annotations

import questionary

from ...errors import StoreUnavailable
from ...navigation import Screen
from ..components import BRAND_STYLE, render_header, render_welcome_banner
from ..router import Go, NavResult, Router, register_screen


@register_screen(Screen.MAIN)
def show_main_menu(router: Router) -> NavResult:
    router.console.clear()
    render_welcome_banner(router.console)

    table = router.controller.table
    try:
        total = router.query(router.store.count, table)
    except StoreUnavailable:
        total = None
    render_header(router, total)

    choices = [
        questionary.Choice(f"Browse {table}", value="browse"),
        questionary.Choice("Bookmarks", value="bookmarks"),
    ]
    if len(router.store.tables) > 1:
        choices.append(questionary.Choice("Switch category", value="switch"))
    choices += [
        questionary.Separator(""),
        questionary.Choice("Exit", value="exit"),
    ]

    choice = questionary.select(
        "What would you like to do?",
        choices=choices,
        style=BRAND_STYLE,
    ).ask()

    if choice is None or choice == "exit":
        return "exit"
    if choice == "browse":
        return Go(Screen.SECOND)
    if choice == "bookmarks":
        return Go(Screen.BOOKMARK)

    picked = questionary.select(
        "Category",
        choices=list(router.store.tables),
        default=table,
        style=BRAND_STYLE,
    ).ask()
    if picked:
        router.controller.select_table(picked)
        router.state.remember(last_table=picked)
    return None
