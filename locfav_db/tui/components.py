"""Reusable UI components for the TUI."""
from __future__ import annotations

from typing import TYPE_CHECKING

import questionary
from questionary import Choice, Separator
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console

    from ..models import Record
    from .router import Router


# ═══════════════════════════════════════════════════════════════════════════════
# BRAND STYLING
# ═══════════════════════════════════════════════════════════════════════════════

BRAND_STYLE = questionary.Style([
    ("qmark", "fg:#f4a261 bold"),
    ("question", "bold"),
    ("answer", "fg:#e9c46a bold"),
    ("highlighted", "fg:#f4a261 bold"),
    ("pointer", "fg:#f4a261 bold"),
    ("selected", "fg:#e9c46a"),
])


# ═══════════════════════════════════════════════════════════════════════════════
# NAVIGATION HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def nav_choices(include_separator: bool = True) -> list:
    """Standard Back/Home navigation choices.

    Append to every screen's menu for consistent navigation.
    """
    choices: list = []
    if include_separator:
        choices.append(Separator())
    choices.extend([
        Choice(title="← Back", value="back"),
        Choice(title="Home", value="home"),
    ])
    return choices


# ═══════════════════════════════════════════════════════════════════════════════
# HEADER / BREADCRUMBS
# ═══════════════════════════════════════════════════════════════════════════════

_BANNER_ART = """\
[bold #f4a261]╔═══════════════════════════════════════════╗
║   [white]locfav[/white] · places you keep coming back to   ║
╚═══════════════════════════════════════════╝[/bold #f4a261]"""


def render_welcome_banner(console: Console) -> None:
    console.print(_BANNER_ART)
    console.print()


def render_header(router: Router, total: int | None) -> None:
    """Compact context bar: database, table and record count."""
    settings = router.settings
    count = f"[cyan]{total:,}[/cyan]" if total is not None else "[yellow]?[/yellow]"
    content = (
        f"  [bold]DB[/bold] [dim]{settings.LOCFAV_DB_PATH}[/dim]  "
        f"[bold]Table[/bold] [cyan]{router.controller.table}[/cyan]  "
        f"[bold]Records[/bold] {count}"
    )
    router.console.print(Panel.fit(content, border_style="dim"))
    router.console.print()


def render_breadcrumbs(router: Router) -> None:
    router.console.print(f"[dim]{router.controller.breadcrumbs()}[/dim]\n")


# ═══════════════════════════════════════════════════════════════════════════════
# RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

def render_record(console: Console, record: Record, *, favorite: bool = False, title: str = "Record") -> None:
    star = " [yellow]★[/yellow]" if favorite else ""
    content = "\n".join([
        f"[bold]{record.name}[/bold]{star}",
        "",
        f"[dim]Tel:[/dim]      {record.tel or '[dim](none)[/dim]'}",
        f"[dim]Address:[/dim]  {record.address or '[dim](none)[/dim]'}",
        f"[dim]Position:[/dim] {record.position}",
    ])
    console.print(Panel.fit(content, title=f"[bold]{title}[/bold]"))
    console.print()


def render_records_table(console: Console, records: list[Record], *, title: str, favorites: set[int] | None = None) -> None:
    table = Table(title=f"[bold]{title}[/bold]")
    table.add_column("#", style="cyan", justify="right", no_wrap=True)
    table.add_column("★", justify="center", width=2)
    table.add_column("Name", style="bold", max_width=30)
    table.add_column("Tel", max_width=16)
    table.add_column("Address", max_width=40)

    favs = favorites or set()
    for r in records:
        table.add_row(str(r.position), "★" if r.position in favs else "", r.name, r.tel, r.address)

    console.print(table)
    console.print()


def render_error(
    console: Console,
    title: str,
    cause: str,
    action: str | None = None,
) -> None:
    """Render a friendly error panel with 3-part structure."""
    content = f"[bold red]✗ {title}[/bold red]\n\n"
    content += f"[yellow]Cause:[/yellow] {cause}\n"

    if action:
        content += f"\n[dim]→ {action}[/dim]"

    console.print(Panel.fit(content, border_style="red", title="Error"))
    console.print()
