"""Record detail screen (third screen)."""
from __future__ import annotations

import questionary
from questionary import Choice

from ...errors import NotFound
from ...models import ToggleResult
from ...navigation import Screen
from ..components import BRAND_STYLE, nav_choices, render_breadcrumbs, render_error, render_record
from ..router import Go, NavResult, Router, register_screen


@register_screen(Screen.THIRD)
def show_record_detail(router: Router) -> NavResult:
    router.console.clear()
    render_breadcrumbs(router)

    view = router.view
    rec = view.record
    if rec is None:
        if view.error == "not_found":
            render_error(
                router.console,
                "Record not found",
                f"No record at position {view.position} in {view.table}",
            )
        else:
            router.console.print("[yellow]No record selected.[/yellow]\n")
        action = questionary.select(
            "What next?", choices=nav_choices(include_separator=False), style=BRAND_STYLE
        ).ask()
        return action or "back"

    registry = router.registry()
    fav = router.query(registry.is_favorite, rec.position)
    render_record(router.console, rec, favorite=fav, title=view.table)

    action = questionary.select(
        "What next?",
        choices=[
            Choice("Remove from favorites" if fav else "Add to favorites", value="toggle"),
            Choice("Show on map", value="map"),
            *nav_choices(),
        ],
        style=BRAND_STYLE,
    ).ask()

    if action == "toggle":
        try:
            result = router.query(registry.toggle_favorite, rec.position)
        except NotFound:
            render_error(
                router.console,
                "Record no longer exists",
                f"{view.table}[{rec.position}] was deleted",
            )
            return "back"
        verb = "Added to" if result is ToggleResult.ADDED else "Removed from"
        router.console.print(f"[green]{verb} favorites[/green]")
        return None
    if action == "map":
        return Go(Screen.FOURTH, rec.position)
    return action or "back"
