from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

import locfav_db.cli as cli

runner = CliRunner()


@pytest.fixture
def env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOCFAV_DB_PATH", str(tmp_path / "data" / "locfav.db"))
    monkeypatch.setenv("LOCFAV_TABLES", "locations,cafes")
    monkeypatch.setenv("LOCFAV_LOG_DIR", str(tmp_path / "_logs"))
    monkeypatch.delenv("LOCFAV_MAP_API_KEY", raising=False)
    csv_path = tmp_path / "places.csv"
    csv_path.write_text(
        "name,tel,address\nCafe,555-0100,1 Main St\nLibrary,555-0101,2 Oak Ave\n",
        encoding="utf-8",
    )
    return tmp_path


def _invoke(*args: str):
    return runner.invoke(cli.app, list(args))


def test_init_import_get(env):
    assert _invoke("init").exit_code == 0
    r = _invoke("import", str(env / "places.csv"))
    assert r.exit_code == 0, r.output
    assert "inserted" in r.output

    r = _invoke("get", "0", "--json")
    assert r.exit_code == 0
    assert json.loads(r.output) == {"position": 0, "name": "Cafe", "tel": "555-0100", "address": "1 Main St"}


def test_get_errors_map_to_exit_codes(env):
    _invoke("import", str(env / "places.csv"))

    r = _invoke("get", "99")
    assert r.exit_code == 1
    assert "NotFound" in r.output

    r = _invoke("get", "0", "--table", "drop table locations")
    assert r.exit_code == 2
    assert "InvalidTable" in r.output


def test_missing_database_is_store_unavailable(env):
    r = _invoke("get", "0")
    assert r.exit_code == 3
    assert "StoreUnavailable" in r.output


def test_favorite_toggle_and_delete(env):
    _invoke("import", str(env / "places.csv"))

    assert "added" in _invoke("favorite", "1").output
    r = _invoke("favorites", "--json")
    assert [f["name"] for f in json.loads(r.output)] == ["Library"]

    assert _invoke("delete", "1", "--yes").exit_code == 0
    r = _invoke("favorites", "--json")
    assert json.loads(r.output) == []

    assert _invoke("favorite", "1").exit_code == 1


def test_tui_without_map_key_fails_fast(env):
    r = _invoke()
    assert r.exit_code == 2
    assert "LOCFAV_MAP_API_KEY" in r.output
    assert not (env / "data" / "locfav.db").exists()


def test_run_uses_real_host_port_when_called_directly(monkeypatch, tmp_path):
    """Calling cli.run() directly must not use Typer OptionInfo defaults."""

    settings = SimpleNamespace(LOCFAV_API_HOST="127.0.0.1", LOCFAV_API_PORT=8140, LOCFAV_LOG_ACCESS=False)
    captured: dict[str, object] = {}

    def fake_uvicorn_run(app, host=None, port=None, reload=None, **kwargs):
        captured.update(app=app, host=host, port=port, reload=reload)

    monkeypatch.setattr(cli, "load_settings", lambda: settings)
    monkeypatch.setattr("locfav_db.logging.setup_logging", lambda s, name: tmp_path / name)
    monkeypatch.setitem(sys.modules, "uvicorn", SimpleNamespace(run=fake_uvicorn_run))

    cli.run()

    assert captured == {"app": "locfav_db.app:app", "host": "127.0.0.1", "port": 8140, "reload": False}
