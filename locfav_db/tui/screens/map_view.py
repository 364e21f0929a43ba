"""Map screen (fourth screen). Terminal: only Back/Home from here."""
from __future__ import annotations

import questionary

from ...navigation import Screen
from ..components import BRAND_STYLE, nav_choices, render_breadcrumbs, render_error, render_record
from ..router import NavResult, Router, register_screen


@register_screen(Screen.FOURTH)
def show_map(router: Router) -> NavResult:
    router.console.clear()
    render_breadcrumbs(router)

    view = router.view
    if view.record is None:
        render_error(
            router.console,
            "Nothing to show on the map",
            f"No record at position {view.position} in {view.table}"
            if view.error == "not_found"
            else "No record selected",
        )
    else:
        render_record(router.console, view.record, title="Location")
        router.console.print(
            f"[bold]Open in {router.maps.name}:[/bold] {router.maps.link_for(view.record)}\n"
        )

    action = questionary.select(
        "What next?", choices=nav_choices(include_separator=False), style=BRAND_STYLE
    ).ask()
    return action or "back"
