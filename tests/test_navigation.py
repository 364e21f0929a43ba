from __future__ import annotations

import threading

import pytest

from locfav_db.errors import InvalidTable, InvalidTransition, StoreUnavailable
from locfav_db.navigation import NavigationController, Navigator, Screen, ScreenView
from locfav_db.store import RecordStore
from locfav_db.worker import StoreWorker


@pytest.fixture
def controller(cafe_store) -> NavigationController:
    return NavigationController(cafe_store, "locations")


def test_navigator_breadcrumbs():
    nav = Navigator(ScreenView(Screen.MAIN, "locations"))
    assert nav.breadcrumbs() == "Home"
    nav.push(ScreenView(Screen.SECOND, "locations"))
    nav.push(ScreenView(Screen.THIRD, "locations", 0))
    assert nav.breadcrumbs() == "Home > List > Detail"
    assert nav.depth() == 3

    assert nav.pop().screen is Screen.THIRD
    nav.home()
    assert nav.depth() == 1
    assert nav.pop() is None


def test_starts_on_main(controller):
    assert controller.current == ScreenView(Screen.MAIN, "locations")


def test_forward_chain_resolves_records(controller):
    controller.navigate(Screen.SECOND)
    assert controller.current.is_list_view

    view = controller.navigate(Screen.THIRD, 0)
    assert view.record is not None and view.record.name == "Cafe"
    assert controller.current is view

    view = controller.navigate("fourth", 0)
    assert view.screen is Screen.FOURTH
    assert view.record.address == "1 Main St"
    assert controller.breadcrumbs() == "Home > List > Detail > Map"


@pytest.mark.parametrize(
    "path, target",
    [
        ([], Screen.THIRD),
        ([], Screen.FOURTH),
        ([Screen.SECOND], Screen.BOOKMARK),
        ([Screen.BOOKMARK], Screen.SECOND),
        ([Screen.SECOND, Screen.THIRD, Screen.FOURTH], Screen.FOURTH),
    ],
)
def test_illegal_transitions_are_refused(controller, path, target):
    for screen in path:
        controller.navigate(screen)
    depth = controller.nav.depth()

    with pytest.raises(InvalidTransition):
        controller.navigate(target)
    assert controller.nav.depth() == depth


def test_missing_record_enters_screen_with_error(controller):
    controller.navigate(Screen.SECOND)
    view = controller.navigate(Screen.THIRD, 99)
    assert view.screen is Screen.THIRD
    assert view.record is None
    assert view.error == "not_found"


def test_store_failure_aborts_transition(tmp_path):
    broken = RecordStore(tmp_path / "missing.db", ["locations"], sleep=lambda _: None)
    controller = NavigationController(broken, "locations")
    controller.navigate(Screen.SECOND)

    with pytest.raises(StoreUnavailable):
        controller.navigate(Screen.THIRD, 0)
    assert controller.current.screen is Screen.SECOND


def test_bookmark_exit_returns_to_main(controller):
    controller.navigate(Screen.BOOKMARK)
    assert controller.back().screen is Screen.MAIN
    assert controller.nav.depth() == 1


def test_back_and_home(controller):
    controller.navigate(Screen.SECOND)
    controller.navigate(Screen.THIRD, 1)
    assert controller.back().screen is Screen.SECOND
    controller.navigate(Screen.THIRD, 2)
    assert controller.home().screen is Screen.MAIN
    assert controller.back().screen is Screen.MAIN


def test_select_table_validates_and_resets(controller):
    controller.navigate(Screen.SECOND)
    controller.select_table("cafes")
    assert controller.table == "cafes"
    assert controller.current == ScreenView(Screen.MAIN, "cafes")

    with pytest.raises(InvalidTable):
        controller.select_table("drop table locations")
    assert controller.table == "cafes"


class _GatedStore:
    """Wraps a store so get_record blocks until released."""

    def __init__(self, inner: RecordStore):
        self._inner = inner
        self.entered = threading.Event()
        self.release = threading.Event()

    def resolve_table(self, name):
        return self._inner.resolve_table(name)

    def get_record(self, table, position):
        self.entered.set()
        assert self.release.wait(5)
        return self._inner.get_record(table, position)


def test_request_commits_only_after_query_resolves(cafe_store):
    gated = _GatedStore(cafe_store)
    with StoreWorker() as worker:
        controller = NavigationController(gated, "locations", worker=worker)
        controller.navigate(Screen.SECOND)

        fut = controller.request(Screen.THIRD, 0)
        assert gated.entered.wait(timeout=5)
        # Query in flight: the detail screen must not be current yet.
        assert controller.current.screen is Screen.SECOND

        gated.release.set()
        view = fut.result(timeout=5)

    assert view.record.name == "Cafe"
    assert controller.current is view


def test_back_abandons_in_flight_request(cafe_store):
    gated = _GatedStore(cafe_store)
    with StoreWorker() as worker:
        controller = NavigationController(gated, "locations", worker=worker)
        controller.navigate(Screen.SECOND)

        fut = controller.request(Screen.THIRD, 0)
        assert gated.entered.wait(timeout=5)
        controller.back()
        gated.release.set()
        worker.submit(lambda: None).result(timeout=5)

    assert fut.cancelled()
    assert controller.current.screen is Screen.MAIN


def test_newer_request_cancels_pending_one(cafe_store):
    gate = threading.Event()
    with StoreWorker() as worker:
        controller = NavigationController(cafe_store, "locations", worker=worker)
        controller.navigate(Screen.SECOND)

        worker.submit(gate.wait, 5)
        first = controller.request(Screen.THIRD, 0)
        second = controller.request(Screen.THIRD, 1)
        gate.set()
        view = second.result(timeout=5)

    assert first.cancelled()
    assert view.record.name == "Library"
    assert controller.nav.depth() == 3


def test_request_without_worker_is_an_error(controller):
    with pytest.raises(RuntimeError):
        controller.request(Screen.SECOND)
