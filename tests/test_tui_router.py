"""Unit tests for the TUI Router."""
from __future__ import annotations

from io import StringIO
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from locfav_db.favorites import FavoriteRegistry
from locfav_db.navigation import NavigationController, Screen
from locfav_db.store import RecordStore
from locfav_db.tui import router as router_module
from locfav_db.tui.router import Go, Router, register_screen
from locfav_db.tui.state import UIState
from locfav_db.worker import StoreWorker


def _router(store: RecordStore, *, worker: StoreWorker | None = None) -> tuple[Router, StringIO]:
    out = StringIO()
    settings = MagicMock()
    settings.LOCFAV_PAGE_SIZE = 25
    router = Router(
        console=Console(file=out, width=120),
        settings=settings,
        state=UIState(),
        controller=NavigationController(store, "locations", worker=worker),
        registry_factory=lambda name: FavoriteRegistry(store, name),
        maps=MagicMock(),
    )
    return router, out


@pytest.fixture
def screens():
    original = router_module.SCREENS.copy()
    router_module.SCREENS.clear()
    try:
        yield router_module.SCREENS
    finally:
        router_module.SCREENS.clear()
        router_module.SCREENS.update(original)


def test_register_screen_decorator(screens):
    @register_screen(Screen.MAIN)
    def _main(router):
        return "exit"

    assert screens[Screen.MAIN] is _main


def test_router_normalize_nav_result_aliases():
    assert Router._normalize_nav_result("back") == "back"
    assert Router._normalize_nav_result("← Back") == "back"
    assert Router._normalize_nav_result("Home") == "home"
    assert Router._normalize_nav_result("main menu") == "home"
    assert Router._normalize_nav_result("quit") == "exit"
    assert Router._normalize_nav_result("") is None
    go = Go(Screen.SECOND)
    assert Router._normalize_nav_result(go) is go


def test_run_walks_forward_and_back(cafe_store, screens):
    router, _ = _router(cafe_store)
    script = iter([
        Go(Screen.SECOND),
        Go(Screen.THIRD, 0),
        "back",
        "home",
        "exit",
    ])
    seen: list[tuple[str, object]] = []

    def _screen(r: Router):
        seen.append((r.view.screen.value, r.view.record.name if r.view.record else None))
        return next(script)

    for s in Screen:
        screens[s] = _screen

    router.run()

    assert seen == [
        ("main", None),
        ("second", None),
        ("third", "Cafe"),
        ("second", None),
        ("main", None),
    ]
    assert router.state.session_history == ["main", "second", "third", "second", "main"]
    assert router.state.last_position == 0


def test_refused_transition_stays_put(cafe_store, screens):
    router, out = _router(cafe_store)
    calls = {"n": 0}

    def _main(r: Router):
        calls["n"] += 1
        return Go(Screen.FOURTH, 0) if calls["n"] == 1 else "exit"

    screens[Screen.MAIN] = _main
    router.run()

    assert router.controller.current.screen is Screen.MAIN
    assert "Can't go there" in out.getvalue()


def test_store_failure_during_go_is_rendered(tmp_path, screens):
    broken = RecordStore(tmp_path / "missing.db", ["locations"], sleep=lambda _: None)
    router, out = _router(broken)
    router.controller.navigate(Screen.SECOND)

    assert router.go(Go(Screen.THIRD, 0)) is False
    assert router.controller.current.screen is Screen.SECOND
    assert "Store unavailable" in out.getvalue()


def test_query_and_go_use_the_worker(cafe_store, screens):
    with StoreWorker() as worker:
        router, _ = _router(cafe_store, worker=worker)
        assert router.query(cafe_store.count, "locations") == 3
        assert router.go(Go(Screen.SECOND)) is True
        assert router.go(Go(Screen.THIRD, 2)) is True

    assert router.view.record.name == "Park"


def test_unknown_screen_returns_home(cafe_store, screens):
    router, out = _router(cafe_store)
    router.controller.navigate(Screen.BOOKMARK)
    screens[Screen.MAIN] = lambda r: "exit"

    router.run()

    assert router.state.session_history == ["bookmark", "main"]
    assert "No screen registered" in out.getvalue()
