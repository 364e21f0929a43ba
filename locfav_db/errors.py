"""Exception taxonomy for locfav_db.

Every failure the store, registry or navigation layer raises is a subclass of
``LocFavError`` so outer surfaces (TUI, CLI, API) can translate them in one
place.
"""
from __future__ import annotations

from pathlib import Path


class LocFavError(Exception):
    """Root exception for locfav_db."""


class InvalidTable(LocFavError):
    """Table selector is not on the configured allow-list."""

    def __init__(self, table_name: object, allowed: tuple[str, ...] = ()):
        self.table_name = table_name
        self.allowed = tuple(allowed)
        hint = f" (allowed: {', '.join(self.allowed)})" if self.allowed else ""
        super().__init__(f"unknown table {table_name!r}{hint}")


class NotFound(LocFavError):
    """Valid table, but no record at the requested position."""

    def __init__(self, table_name: str, position: object):
        self.table_name = table_name
        self.position = position
        super().__init__(f"no record at position {position!r} in table {table_name!r}")


class StoreUnavailable(LocFavError):
    """The SQLite file could not be opened or queried."""

    def __init__(self, operation: str, db_path: Path | str, table_name: str | None = None, cause: str = ""):
        self.operation = operation
        self.db_path = Path(db_path)
        self.table_name = table_name
        self.cause = cause
        where = f" on table {table_name!r}" if table_name else ""
        detail = f": {cause}" if cause else ""
        super().__init__(f"store unavailable during {operation}{where} ({self.db_path}){detail}")


class ConfigMissing(LocFavError):
    """A required setting is absent at startup."""

    def __init__(self, setting: str, hint: str = ""):
        self.setting = setting
        msg = f"required setting {setting} is not configured"
        if hint:
            msg += f"; {hint}"
        super().__init__(msg)


class InvalidTransition(LocFavError):
    """Navigation was asked for a move the screen graph does not allow."""

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"cannot navigate from {source} to {target}")
