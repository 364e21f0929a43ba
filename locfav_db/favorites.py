"""Favorite registry: a membership set layered over one category table."""
from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from datetime import datetime, timezone

from .db import TableQueries
from .errors import NotFound
from .models import Record, ToggleResult
from .store import RecordStore

__all__ = ["FavoriteRegistry", "FavoritesView"]

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class FavoritesView:
    """Lazy, finite, restartable iterable over a table's favorite records.

    Each ``iter()`` starts a fresh walk. Pages are fetched on demand (keyset on
    position) with one short-lived connection per page, so an abandoned
    iteration holds no database handle.
    """

    def __init__(self, store: RecordStore, table_name: str, page_size: int = 50):
        self._store = store
        self._table = table_name
        self._page_size = max(1, int(page_size))

    def __iter__(self) -> Iterator[Record]:
        after = -1
        while True:
            page = self._store.run(
                "list_favorites",
                self._table,
                lambda conn, q: self._fetch_page(conn, q, after),
            )
            yield from page
            if len(page) < self._page_size:
                return
            after = page[-1].position

    def _fetch_page(self, conn: sqlite3.Connection, q: TableQueries, after: int) -> list[Record]:
        rows = conn.execute(q.select_favorites_page, (q.table, after, self._page_size)).fetchall()
        records = [Record.from_row(r) for r in rows]
        _purge_dangling(conn, q, after, records[-1].position if len(records) == self._page_size else None)
        return records


def _purge_dangling(conn: sqlite3.Connection, q: TableQueries, after: int, upto: int | None) -> None:
    """Drop favorites in (after, upto] whose record no longer exists."""
    sql = (
        "DELETE FROM favorites WHERE table_name=? AND position > ? "
        f"AND position NOT IN (SELECT position FROM {q.ident})"
    )
    params: tuple = (q.table, after)
    if upto is not None:
        sql += " AND position <= ?"
        params = (q.table, after, upto)
    cur = conn.execute(sql, params)
    if cur.rowcount:
        logger.info("purged %d dangling favorite(s) in %s", cur.rowcount, q.table)


class FavoriteRegistry:
    """Marks records of one table as favorites.

    Favorites never outlive their record: ``RecordStore.delete_record`` drops
    them in the same transaction, and every read joins against the table so a
    stale row is neither returned nor kept.
    """

    def __init__(self, store: RecordStore, table_name: str, *, page_size: int = 50):
        store.resolve_table(table_name)
        self.store = store
        self.table_name = table_name
        self._page_size = page_size

    def toggle_favorite(self, position: int) -> ToggleResult:
        self.store.get_record(self.table_name, position)

        def _toggle(conn: sqlite3.Connection, q: TableQueries) -> ToggleResult:
            # The record may have gone since the lookup above.
            if conn.execute(q.select_one, (position,)).fetchone() is None:
                raise NotFound(q.table, position)
            cur = conn.execute(
                "DELETE FROM favorites WHERE table_name=? AND position=?", (q.table, position)
            )
            if cur.rowcount:
                return ToggleResult.REMOVED
            conn.execute(
                "INSERT INTO favorites(table_name, position, created_at) VALUES(?, ?, ?)",
                (q.table, position, _utc_now()),
            )
            return ToggleResult.ADDED

        result = self.store.run("toggle_favorite", self.table_name, _toggle)
        logger.info("favorite %s[%d] %s", self.table_name, position, result.value)
        return result

    def is_favorite(self, position: int) -> bool:
        def _check(conn: sqlite3.Connection, q: TableQueries) -> bool:
            row = conn.execute(
                f"SELECT 1 FROM favorites f JOIN {q.ident} r ON r.position = f.position "
                "WHERE f.table_name=? AND f.position=?",
                (q.table, position),
            ).fetchone()
            return row is not None

        return self.store.run("is_favorite", self.table_name, _check)

    def list_favorites(self) -> FavoritesView:
        return FavoritesView(self.store, self.table_name, page_size=self._page_size)
