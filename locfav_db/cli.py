from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .errors import ConfigMissing, InvalidTable, LocFavError, NotFound, StoreUnavailable
from .favorites import FavoriteRegistry
from .importer import import_csv
from .maps import provider_from_settings
from .models import ToggleResult
from .settings import Settings, load_settings
from .store import RecordStore

app = typer.Typer(
    add_completion=False,
    help="locfav_db: location favorites over SQLite",
    rich_markup_mode="rich",
)
console = Console()

# Exit codes per error type; anything else from LocFavError exits 1.
_EXIT_CODES: dict[type[LocFavError], int] = {
    NotFound: 1,
    InvalidTable: 2,
    ConfigMissing: 2,
    StoreUnavailable: 3,
}


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _fail(e: LocFavError) -> NoReturn:
    label = type(e).__name__
    console.print(f"[red]{label}:[/red] {e}")
    if isinstance(e, StoreUnavailable):
        console.print("[dim]Run[/dim] [cyan]locfav init[/cyan] [dim]if the database does not exist yet.[/dim]")
    raise typer.Exit(code=_EXIT_CODES.get(type(e), 1))


def _store(s: Settings) -> RecordStore:
    return RecordStore.from_settings(s)


def _table(s: Settings, table: Optional[str]) -> str:
    return table or str(s.LOCFAV_DEFAULT_TABLE)


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context):
    """
    [bold]locfav_db[/bold]: browse places and keep favorites.

    [dim]Run without arguments to launch the interactive screens.[/dim]

    [bold]Examples:[/bold]
      python -m locfav_db init
      python -m locfav_db import places.csv --table locations
      python -m locfav_db get 0
      python -m locfav_db favorite 0
    """
    if ctx.invoked_subcommand is None:
        tui()
        raise typer.Exit(code=0)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("status", help="Show configuration and per-table counts")
def status():
    s = load_settings()
    console.print(Panel.fit(
        "\n".join([
            f"[bold]Database:[/bold]   {s.LOCFAV_DB_PATH}",
            f"[bold]Tables:[/bold]     {', '.join(s.LOCFAV_TABLES)}",
            f"[bold]Default:[/bold]    {s.LOCFAV_DEFAULT_TABLE}",
            f"[bold]API Server:[/bold] http://{s.LOCFAV_API_HOST}:{s.LOCFAV_API_PORT}",
            f"[bold]Map key:[/bold]    {'[green]set[/green]' if s.LOCFAV_MAP_API_KEY else '[red](not set)[/red]'}",
        ]),
        title="[bold]Configuration[/bold]",
    ))

    store = _store(s)
    t = Table(title="[bold]Tables[/bold]", show_header=True)
    t.add_column("Table", style="bold")
    t.add_column("Records", style="cyan", justify="right")
    t.add_column("Favorites", style="yellow", justify="right")
    try:
        for name in store.tables:
            favs = sum(1 for _ in FavoriteRegistry(store, name).list_favorites())
            t.add_row(name, f"{store.count(name):,}", f"{favs:,}")
    except StoreUnavailable as e:
        console.print(f"[yellow]Database not ready:[/yellow] {e}")
        console.print("\n[dim]Run[/dim] [cyan]locfav init[/cyan] [dim]to get started.[/dim]")
        return
    console.print(t)


@app.command("init", help="Create the database and every configured table")
def init():
    s = load_settings()
    store = _store(s)
    try:
        store.init_schema()
    except StoreUnavailable as e:
        _fail(e)
    console.print(f"[green]✓[/green] Database ready at [cyan]{s.LOCFAV_DB_PATH}[/cyan]")


@app.command("import", help="Append records from a CSV file (name,tel,address[,position])")
def import_data(
    csv_path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="CSV file")],
    table: Annotated[Optional[str], typer.Option("--table", "-t", help="Target table")] = None,
):
    s = load_settings()
    store = _store(s)
    name = _table(s, table)
    try:
        store.init_schema()
        stats = import_csv(store, name, csv_path)
    except LocFavError as e:
        _fail(e)
    except ValueError as e:
        console.print(f"[red]Import failed:[/red] {e}")
        raise typer.Exit(code=2)
    console.print(
        f"[green]✓[/green] {name}: inserted [cyan]{stats.inserted}[/cyan], "
        f"skipped [yellow]{stats.skipped}[/yellow]"
    )


@app.command("get", help="Show the record at a position")
def get(
    position: Annotated[int, typer.Argument(help="Record position")],
    table: Annotated[Optional[str], typer.Option("--table", "-t")] = None,
    json_out: Annotated[bool, typer.Option("--json", help="Print JSON")] = False,
):
    s = load_settings()
    try:
        rec = _store(s).get_record(_table(s, table), position)
    except LocFavError as e:
        _fail(e)
    if json_out:
        typer.echo(json.dumps(rec.to_dict(), ensure_ascii=False))
        return
    console.print(Panel.fit(
        f"[bold]{rec.name}[/bold]\n\nTel:     {rec.tel}\nAddress: {rec.address}",
        title=f"{_table(s, table)}[{rec.position}]",
    ))


@app.command("list", help="List records of a table")
def list_records(
    table: Annotated[Optional[str], typer.Option("--table", "-t")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n")] = 25,
    offset: Annotated[int, typer.Option("--offset")] = 0,
):
    s = load_settings()
    name = _table(s, table)
    try:
        records = _store(s).list_records(name, limit=limit, offset=offset)
    except LocFavError as e:
        _fail(e)
    t = Table(title=f"[bold]{name}[/bold]")
    t.add_column("#", style="cyan", justify="right")
    t.add_column("Name", style="bold")
    t.add_column("Tel")
    t.add_column("Address")
    for r in records:
        t.add_row(str(r.position), r.name, r.tel, r.address)
    console.print(t)


@app.command("favorite", help="Toggle the favorite mark of a record")
def favorite(
    position: Annotated[int, typer.Argument(help="Record position")],
    table: Annotated[Optional[str], typer.Option("--table", "-t")] = None,
):
    s = load_settings()
    name = _table(s, table)
    try:
        result = FavoriteRegistry(_store(s), name).toggle_favorite(position)
    except LocFavError as e:
        _fail(e)
    if result is ToggleResult.ADDED:
        console.print(f"[yellow]★[/yellow] {name}[{position}] added to favorites")
    else:
        console.print(f"{name}[{position}] removed from favorites")


@app.command("favorites", help="List favorite records")
def favorites(
    table: Annotated[Optional[str], typer.Option("--table", "-t")] = None,
    json_out: Annotated[bool, typer.Option("--json", help="Print JSON")] = False,
):
    s = load_settings()
    name = _table(s, table)
    try:
        records = list(FavoriteRegistry(_store(s), name).list_favorites())
    except LocFavError as e:
        _fail(e)
    if json_out:
        typer.echo(json.dumps([r.to_dict() for r in records], ensure_ascii=False))
        return
    if not records:
        console.print(f"[dim]No favorites in {name}.[/dim]")
        return
    for r in records:
        console.print(f"[yellow]★[/yellow] [cyan]{r.position:>4}[/cyan]  {r.name}  [dim]{r.address}[/dim]")


@app.command("delete", help="Delete a record (and its favorite mark)")
def delete(
    position: Annotated[int, typer.Argument(help="Record position")],
    table: Annotated[Optional[str], typer.Option("--table", "-t")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    s = load_settings()
    name = _table(s, table)
    if not yes and not typer.confirm(f"Delete {name}[{position}]?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=0)
    try:
        _store(s).delete_record(name, position)
    except LocFavError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Deleted {name}[{position}]")


@app.command("run", help="Run the HTTP API server")
@app.command("serve", hidden=True)  # Alias
def run(
    host: Annotated[Optional[str], typer.Option(help="Host to bind")] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to bind")] = None,
):
    import uvicorn

    from .logging import setup_logging

    s = load_settings()
    host = host or s.LOCFAV_API_HOST
    port = port or s.LOCFAV_API_PORT

    log_file = setup_logging(s, "locfav_api.log")

    console.print(Panel.fit(
        f"[bold]API Server starting...[/bold]\n\n"
        f"  URL:  [cyan]http://{host}:{port}[/cyan]\n"
        f"  Docs: [cyan]http://{host}:{port}/docs[/cyan]\n\n"
        f"  Logs: [cyan]{log_file}[/cyan]\n\n"
        f"[dim]Press CTRL+C to stop[/dim]",
        title="[bold green]locfav_db API[/bold green]",
    ))

    uvicorn.run(
        "locfav_db.app:app",
        host=host,
        port=port,
        reload=False,
        access_log=bool(s.LOCFAV_LOG_ACCESS),
        log_config=None,
    )


@app.command("tui", help="Launch the interactive screens")
def tui():
    from .logging import setup_logging
    from .navigation import NavigationController
    from .tui import Router, UIState
    from .tui import screens  # noqa: F401  (registers screen handlers)
    from .worker import StoreWorker

    s = load_settings()
    try:
        maps = provider_from_settings(s)
    except ConfigMissing as e:
        _fail(e)

    setup_logging(s, "locfav_tui.log", console=False)

    store = _store(s)
    try:
        store.init_schema()
    except StoreUnavailable as e:
        _fail(e)

    table = str(s.LOCFAV_DEFAULT_TABLE)
    with StoreWorker() as worker:
        router = Router(
            console=console,
            settings=s,
            state=UIState(last_table=table),
            controller=NavigationController(store, table, worker=worker),
            registry_factory=lambda name: FavoriteRegistry(store, name, page_size=s.LOCFAV_PAGE_SIZE),
            maps=maps,
        )
        router.run()


def main():
    app()
