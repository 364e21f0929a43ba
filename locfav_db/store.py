"""Record store: resolves ``(table, position)`` to a :class:`Record`.

Usage::

    store = RecordStore.from_settings(settings)
    store.init_schema()

    rec = store.get_record("locations", 0)
    page = store.list_records("locations", limit=25)
    store.delete_record("locations", 0)   # also drops its favorite

Every call opens and closes its own connection; nothing is cached between
calls and there is no module-level store instance.
"""
from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TypeVar

from .db import TableQueries, advance_position, init_db, next_position, queries_for, scoped_connection
from .errors import InvalidTable, NotFound, StoreUnavailable
from .models import Record
from .settings import Settings

__all__ = ["RecordStore"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordStore:
    """CRUD-by-position over the allow-listed category tables."""

    def __init__(
        self,
        db_path: Path | str,
        tables: Iterable[str],
        *,
        retry_backoff: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.db_path = Path(db_path).expanduser()
        self._tables = tuple(tables)
        self._retry_backoff = max(0.0, float(retry_backoff))
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> RecordStore:
        return cls(
            settings.LOCFAV_DB_PATH,
            settings.LOCFAV_TABLES,
            retry_backoff=settings.LOCFAV_STORE_RETRY_BACKOFF_SEC,
        )

    @property
    def tables(self) -> tuple[str, ...]:
        return self._tables

    # ── Internal helpers ──────────────────────────────────────────────────

    def resolve_table(self, table_name: object) -> TableQueries:
        """Map an untrusted selector to the statements of an allow-listed table.

        Raises InvalidTable before any connection is opened.
        """
        if not isinstance(table_name, str) or table_name not in self._tables:
            raise InvalidTable(table_name, self._tables)
        return queries_for(table_name)

    @staticmethod
    def _check_position(table: str, position: object) -> int:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise NotFound(table, position)
        return position

    def run(
        self,
        operation: str,
        table_name: str,
        fn: Callable[[sqlite3.Connection, TableQueries], T],
    ) -> T:
        """Run ``fn`` inside one scoped connection against ``table_name``.

        SQLite failures are retried once after the configured backoff and then
        raised as StoreUnavailable. Constraint violations become ValueError and
        are not retried. Domain errors raised by ``fn`` pass through untouched.
        """
        q = self.resolve_table(table_name)
        return self._with_retry(operation, q.table, lambda conn: fn(conn, q))

    def _with_retry(
        self,
        operation: str,
        table: str | None,
        fn: Callable[[sqlite3.Connection], T],
        *,
        create: bool = False,
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                with scoped_connection(self.db_path, create=create) as conn:
                    return fn(conn)
            except sqlite3.IntegrityError as e:
                # Constraint violations are bad input, not an unavailable store.
                raise ValueError(f"{operation} on table {table!r}: {e}") from e
            except (sqlite3.ProgrammingError, sqlite3.InterfaceError):
                raise
            except sqlite3.Error as e:
                if attempt >= 2:
                    raise StoreUnavailable(operation, self.db_path, table, cause=str(e)) from e
                logger.warning(
                    "%s failed (%s); retrying in %.2fs", operation, e, self._retry_backoff
                )
                self._sleep(self._retry_backoff)

    # ── Public API ────────────────────────────────────────────────────────

    def init_schema(self) -> None:
        """Create the database file, bookkeeping tables and every category table."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._with_retry("init_schema", None, lambda conn: init_db(conn, self._tables), create=True)
        logger.info("schema ready at %s (tables=%s)", self.db_path, ",".join(self._tables))

    def get_record(self, table_name: str, position: int) -> Record:
        q = self.resolve_table(table_name)
        pos = self._check_position(q.table, position)

        def _get(conn: sqlite3.Connection) -> Record:
            row = conn.execute(q.select_one, (pos,)).fetchone()
            if row is None:
                raise NotFound(q.table, pos)
            return Record.from_row(row)

        return self._with_retry("get_record", q.table, _get)

    def list_records(self, table_name: str, *, limit: int = 25, offset: int = 0) -> list[Record]:
        q = self.resolve_table(table_name)
        limit = max(0, int(limit))
        offset = max(0, int(offset))

        def _list(conn: sqlite3.Connection) -> list[Record]:
            rows = conn.execute(q.select_page, (limit, offset)).fetchall()
            return [Record.from_row(r) for r in rows]

        return self._with_retry("list_records", q.table, _list)

    def count(self, table_name: str) -> int:
        q = self.resolve_table(table_name)
        return self._with_retry(
            "count", q.table, lambda conn: int(conn.execute(q.count).fetchone()[0])
        )

    def insert_record(
        self,
        table_name: str,
        name: str,
        tel: str,
        address: str,
        *,
        position: int | None = None,
    ) -> Record:
        """Append a record.

        Without ``position`` the next free position is used: past the table's
        sequence and past any row written to the table directly. An explicit
        position must not be below that value, so positions freed by deletes
        are never handed out again.
        """
        q = self.resolve_table(table_name)
        if position is not None and (isinstance(position, bool) or not isinstance(position, int) or position < 0):
            raise ValueError(f"position must be a non-negative integer, got {position!r}")

        def _insert(conn: sqlite3.Connection) -> Record:
            nxt = next_position(conn, q.table)
            pos = nxt if position is None else position
            if pos < nxt or conn.execute(q.select_one, (pos,)).fetchone() is not None:
                raise ValueError(
                    f"position {pos} in table {q.table!r} was already assigned (next is {nxt})"
                )
            rec = Record(position=pos, name=str(name or ""), tel=str(tel or ""), address=str(address or ""))
            conn.execute(q.insert, (rec.position, rec.name, rec.tel, rec.address))
            advance_position(conn, q.table, pos)
            return rec

        rec = self._with_retry("insert_record", q.table, _insert)
        logger.debug("inserted %s[%d]", q.table, rec.position)
        return rec

    def delete_record(self, table_name: str, position: int) -> None:
        """Delete a record and every favorite that references it."""
        q = self.resolve_table(table_name)
        pos = self._check_position(q.table, position)

        def _delete(conn: sqlite3.Connection) -> None:
            cur = conn.execute(q.delete, (pos,))
            if cur.rowcount == 0:
                raise NotFound(q.table, pos)
            conn.execute(
                "DELETE FROM favorites WHERE table_name=? AND position=?", (q.table, pos)
            )

        self._with_retry("delete_record", q.table, _delete)
        logger.info("deleted %s[%d]", q.table, pos)
