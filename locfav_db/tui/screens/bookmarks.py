"""Bookmarks screen: the current table's favorites. Leaving returns to Main."""
from __future__ import annotations

import questionary
from questionary import Choice

from ...errors import NotFound
from ...navigation import Screen
from ..components import BRAND_STYLE, nav_choices, render_breadcrumbs, render_records_table
from ..router import NavResult, Router, register_screen


@register_screen(Screen.BOOKMARK)
def show_bookmarks(router: Router) -> NavResult:
    router.console.clear()
    render_breadcrumbs(router)

    registry = router.registry()
    favorites = router.query(lambda: list(registry.list_favorites()))

    if not favorites:
        router.console.print(f"[yellow]No favorites in[/yellow] {registry.table_name} [dim]yet.[/dim]\n")
        choices = nav_choices(include_separator=False)
    else:
        render_records_table(
            router.console,
            favorites,
            title=f"Favorites · {registry.table_name}",
            favorites={r.position for r in favorites},
        )
        choices = [
            *(Choice(f"Remove ★ {r.name}", value=r.position) for r in favorites),
            *nav_choices(),
        ]

    action = questionary.select("Bookmarks", choices=choices, style=BRAND_STYLE).ask()
    if isinstance(action, int):
        try:
            router.query(registry.toggle_favorite, action)
        except NotFound:
            router.console.print("[dim]That place was already deleted.[/dim]")
        return None
    return action or "back"
