from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from .store import RecordStore

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "tel", "address")


@dataclass
class ImportStats:
    inserted: int = 0
    skipped: int = 0


def _read_csv(path: Path) -> list[dict]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing column(s): {', '.join(missing)}")
        return list(reader)


def _to_position(value: object) -> int | None:
    s = str(value or "").strip()
    if not s:
        return None
    try:
        n = int(s)
    except ValueError:
        raise ValueError(f"position {s!r} is not an integer") from None
    if n < 0:
        raise ValueError(f"position {n} is negative")
    return n


def import_csv(store: RecordStore, table_name: str, csv_path: Path | str) -> ImportStats:
    """Append rows of ``name,tel,address[,position]`` to a category table.

    Rows without a name, or with a malformed, negative or already assigned
    position, are skipped and counted.
    """
    store.resolve_table(table_name)
    rows = _read_csv(Path(csv_path))
    stats = ImportStats()

    for i, row in enumerate(rows, start=2):
        name = str(row.get("name") or "").strip()
        if not name:
            stats.skipped += 1
            continue
        try:
            store.insert_record(
                table_name,
                name,
                str(row.get("tel") or "").strip(),
                str(row.get("address") or "").strip(),
                position=_to_position(row.get("position")),
            )
        except ValueError as e:
            logger.warning("%s line %d skipped: %s", csv_path, i, e)
            stats.skipped += 1
            continue
        stats.inserted += 1

    logger.info(
        "imported %s into %s: inserted=%d skipped=%d",
        csv_path,
        table_name,
        stats.inserted,
        stats.skipped,
    )
    return stats
