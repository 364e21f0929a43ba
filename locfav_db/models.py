"""Value types shared by the store, registry and navigation layers."""
from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Record:
    """Immutable snapshot of one row of a category table."""

    position: int
    name: str
    tel: str
    address: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Record:
        return cls(
            position=int(row["position"]),
            name=row["name"] or "",
            tel=row["tel"] or "",
            address=row["address"] or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ToggleResult(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
