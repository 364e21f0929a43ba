from __future__ import annotations

import re
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

-- Favorites reference (table_name, position) across every category table.
-- There is no FOREIGN KEY because the target table varies; delete_record
-- removes matching rows and readers join against the category table.
CREATE TABLE IF NOT EXISTS favorites (
    table_name TEXT NOT NULL,
    position INTEGER NOT NULL,
    created_at TEXT,
    PRIMARY KEY(table_name, position)
);

-- Next position to hand out per category table. Only moves forward, so
-- positions freed by deletes are never reused.
CREATE TABLE IF NOT EXISTS position_seq (
    table_name TEXT PRIMARY KEY,
    next_position INTEGER NOT NULL DEFAULT 0
);
"""

TABLE_DDL = """
CREATE TABLE IF NOT EXISTS {ident} (
    position INTEGER PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    tel TEXT NOT NULL DEFAULT '',
    address TEXT NOT NULL DEFAULT ''
);
"""

_SAFE_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def safe_ident(name: str) -> str:
    s = str(name or "").strip()
    if not _SAFE_IDENT.match(s):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return s


def quote_ident(name: str) -> str:
    return f'"{safe_ident(name)}"'


@dataclass(frozen=True)
class TableQueries:
    """Parameterized statements for one allow-listed category table.

    The quoted table identifier is the only interpolated piece and it has already
    been checked against the allow-list; every value is bound with ``?``.
    """

    table: str
    ident: str
    select_one: str
    select_page: str
    count: str
    insert: str
    delete: str
    select_favorites_page: str


@lru_cache(maxsize=None)
def queries_for(table: str) -> TableQueries:
    t = quote_ident(table)
    return TableQueries(
        table=safe_ident(table),
        ident=t,
        select_one=f"SELECT position, name, tel, address FROM {t} WHERE position=?",
        select_page=(
            f"SELECT position, name, tel, address FROM {t} "
            "ORDER BY position LIMIT ? OFFSET ?"
        ),
        count=f"SELECT COUNT(*) FROM {t}",
        insert=f"INSERT INTO {t}(position, name, tel, address) VALUES(?, ?, ?, ?)",
        delete=f"DELETE FROM {t} WHERE position=?",
        select_favorites_page=(
            "SELECT r.position, r.name, r.tel, r.address FROM favorites f "
            f"JOIN {t} r ON r.position = f.position "
            "WHERE f.table_name=? AND f.position > ? "
            "ORDER BY f.position LIMIT ?"
        ),
    )


def connect(db_path: Path, *, create: bool = False) -> sqlite3.Connection:
    """Open the database file.

    Without ``create`` the file must already exist, so a missing database is
    reported as an error instead of silently producing an empty one.
    """
    mode = "rwc" if create else "rw"
    uri = f"{Path(db_path).expanduser().resolve().as_uri()}?mode={mode}"
    conn = sqlite3.connect(uri, uri=True)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def scoped_connection(db_path: Path, *, create: bool = False) -> Iterator[sqlite3.Connection]:
    """One connection per operation: commit on success, roll back on error,
    always close."""
    conn = connect(db_path, create=create)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(conn: sqlite3.Connection, tables: Iterable[str]) -> None:
    conn.executescript(SCHEMA_SQL)
    for table in tables:
        t = safe_ident(table)
        conn.executescript(TABLE_DDL.format(ident=quote_ident(t)))
        conn.execute(
            "INSERT OR IGNORE INTO position_seq(table_name, next_position) VALUES(?, 0)",
            (t,),
        )
        _sync_position_seq(conn, t)
    conn.commit()


def _sync_position_seq(conn: sqlite3.Connection, table: str) -> None:
    """Move the sequence past rows that were loaded without it (e.g. an
    existing database file copied in)."""
    top = _max_position(conn, table)
    if top is None:
        return
    conn.execute(
        "UPDATE position_seq SET next_position=MAX(next_position, ?) WHERE table_name=?",
        (top + 1, table),
    )


def _max_position(conn: sqlite3.Connection, table: str) -> int | None:
    row = conn.execute(f"SELECT MAX(position) FROM {quote_ident(table)}").fetchone()
    return None if row[0] is None else int(row[0])


def next_position(conn: sqlite3.Connection, table: str) -> int:
    """Next free position: past both the sequence and any row written
    directly to the table."""
    row = conn.execute(
        "SELECT next_position FROM position_seq WHERE table_name=?", (table,)
    ).fetchone()
    seq = int(row[0]) if row else 0
    top = _max_position(conn, table)
    return seq if top is None else max(seq, top + 1)


def advance_position(conn: sqlite3.Connection, table: str, used: int) -> None:
    conn.execute(
        """
        INSERT INTO position_seq(table_name, next_position) VALUES(?, ?)
        ON CONFLICT(table_name) DO UPDATE SET
          next_position=MAX(next_position, excluded.next_position)
        """,
        (table, used + 1),
    )
