from __future__ import annotations

import os
import sys

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `locfav_db/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from locfav_db.store import RecordStore  # noqa: E402


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def store(tmp_path, sleeps) -> RecordStore:
    s = RecordStore(
        tmp_path / "locfav.db",
        ["locations", "cafes"],
        retry_backoff=0.05,
        sleep=sleeps.append,
    )
    s.init_schema()
    return s


@pytest.fixture
def cafe_store(store) -> RecordStore:
    store.insert_record("locations", "Cafe", "555-0100", "1 Main St")
    store.insert_record("locations", "Library", "555-0101", "2 Oak Ave")
    store.insert_record("locations", "Park", "555-0102", "3 Elm Rd")
    return store
