"""Record list screen (second screen)."""
from __future__ import annotations

import questionary
from questionary import Choice

from ...navigation import Screen, ScreenView
from ..components import (
    BRAND_STYLE,
    nav_choices,
    render_breadcrumbs,
    render_error,
    render_record,
    render_records_table,
)
from ..router import Go, NavResult, Router, register_screen


def _show_selected(router: Router, view: ScreenView) -> NavResult:
    if view.record is None:
        render_error(
            router.console,
            "Record not found",
            f"No record at position {view.position} in {view.table}",
            action="Go back and pick another entry",
        )
        choices = nav_choices(include_separator=False)
    else:
        render_record(router.console, view.record, title=view.table)
        choices = [Choice("Open details", value="open"), *nav_choices()]

    action = questionary.select("What next?", choices=choices, style=BRAND_STYLE).ask()
    if action == "open":
        return Go(Screen.THIRD, view.position)
    return action or "back"


@register_screen(Screen.SECOND)
def show_record_list(router: Router) -> NavResult:
    """Paged list of a table's records; picking one opens its details."""
    router.console.clear()
    render_breadcrumbs(router)

    view = router.view
    if not view.is_list_view:
        return _show_selected(router, view)

    table = view.table
    page_size = router.settings.LOCFAV_PAGE_SIZE
    offset = router.state.offset_for(table)

    records = router.query(router.store.list_records, table, limit=page_size, offset=offset)
    total = router.query(router.store.count, table)
    if not records and offset:
        router.state.set_offset(table, 0)
        return None

    registry = router.registry()
    favs = router.query(lambda: {r.position for r in registry.list_favorites()})

    if not records:
        router.console.print(f"[yellow]No records in[/yellow] {table}\n")
    else:
        last = offset + len(records)
        render_records_table(
            router.console,
            records,
            title=f"{table} ({offset + 1}–{last} of {total:,})",
            favorites=favs,
        )

    choices: list = [
        Choice(f"{'★' if r.position in favs else ' '} {r.name}", value=r.position) for r in records
    ]
    if offset + len(records) < total:
        choices.append(Choice("Next page →", value="next"))
    if offset > 0:
        choices.append(Choice("← Previous page", value="prev"))
    choices.extend(nav_choices())

    action = questionary.select("Pick a place", choices=choices, style=BRAND_STYLE).ask()

    if action is None:
        return "back"
    if action == "next":
        router.state.set_offset(table, offset + page_size)
        return None
    if action == "prev":
        router.state.set_offset(table, offset - page_size)
        return None
    if isinstance(action, int):
        return Go(Screen.THIRD, action)
    return action
