"""Screen graph and navigation controller.

The controller owns a stack of :class:`ScreenView` entries. Moving forward to
a record screen with a position resolves the record first; the stack only
changes once the lookup has finished, so no screen is ever shown with data
still in flight.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidTransition, NotFound
from .models import Record
from .store import RecordStore
from .worker import Scope, StoreWorker

__all__ = [
    "Navigator",
    "NavigationController",
    "RECORD_SCREENS",
    "Screen",
    "ScreenView",
    "TRANSITIONS",
]

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    MAIN = "main"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    BOOKMARK = "bookmark"


# Forward moves only; Back/Home are handled by the navigator stack.
TRANSITIONS: dict[Screen, frozenset[Screen]] = {
    Screen.MAIN: frozenset({Screen.SECOND, Screen.BOOKMARK}),
    Screen.SECOND: frozenset({Screen.THIRD}),
    Screen.THIRD: frozenset({Screen.FOURTH}),
    Screen.FOURTH: frozenset(),
    Screen.BOOKMARK: frozenset(),
}

# Screens that show a single record when entered with a position.
RECORD_SCREENS = frozenset({Screen.SECOND, Screen.THIRD, Screen.FOURTH})


@dataclass(frozen=True)
class ScreenView:
    """What a screen needs to render: where we are and the resolved data."""

    screen: Screen
    table: str
    position: int | None = None
    record: Record | None = None
    error: str | None = None

    @property
    def is_list_view(self) -> bool:
        return self.position is None


class Navigator:
    """Stack-based navigation with breadcrumbs.

    - Push on enter: navigating forward pushes to stack
    - Pop on Back: returns to previous screen
    - Reset on Home: clears stack to the main screen
    """

    SCREEN_LABELS = {
        Screen.MAIN: "Home",
        Screen.SECOND: "List",
        Screen.THIRD: "Detail",
        Screen.FOURTH: "Map",
        Screen.BOOKMARK: "Bookmarks",
    }

    def __init__(self, root: ScreenView):
        self._root = root
        self.stack: list[ScreenView] = [root]

    def push(self, view: ScreenView) -> None:
        self.stack.append(view)

    def pop(self) -> ScreenView | None:
        """Go back one screen. Returns the popped view, or None at root."""
        if len(self.stack) > 1:
            return self.stack.pop()
        return None

    def home(self, root: ScreenView | None = None) -> None:
        if root is not None:
            self._root = root
        self.stack = [self._root]

    def current(self) -> ScreenView:
        return self.stack[-1]

    def breadcrumbs(self) -> str:
        """Breadcrumb path like "Home > List > Detail"."""
        return " > ".join(self.SCREEN_LABELS.get(v.screen, str(v.screen)) for v in self.stack)

    def depth(self) -> int:
        return len(self.stack)


class NavigationController:
    """Finite state machine over the five screens.

    ``navigate`` resolves on the calling thread; ``request`` resolves on a
    :class:`StoreWorker` and returns a future. Either way the transition is
    committed only after the record lookup finishes.

    NotFound is recoverable: the screen is entered with ``error="not_found"``.
    InvalidTable and StoreUnavailable leave the stack untouched and propagate.
    """

    def __init__(self, store: RecordStore, table_name: str, *, worker: StoreWorker | None = None):
        store.resolve_table(table_name)
        self.store = store
        self.table = table_name
        self.worker = worker
        self.nav = Navigator(ScreenView(Screen.MAIN, table_name))
        self._lock = threading.RLock()
        self._pending: Scope | None = None

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def current(self) -> ScreenView:
        return self.nav.current()

    def breadcrumbs(self) -> str:
        return self.nav.breadcrumbs()

    def select_table(self, table_name: str) -> None:
        """Switch category table and return to the main screen."""
        self.store.resolve_table(table_name)
        with self._lock:
            self.cancel_pending()
            self.table = table_name
            self.nav.home(ScreenView(Screen.MAIN, table_name))

    # ── Transitions ───────────────────────────────────────────────────────

    def _check(self, target: Screen) -> None:
        source = self.current.screen
        if target not in TRANSITIONS[source]:
            raise InvalidTransition(source.value, Screen(target).value)

    def _resolve(self, target: Screen, position: int | None) -> ScreenView:
        if target not in RECORD_SCREENS or position is None:
            return ScreenView(target, self.table, position)
        try:
            record = self.store.get_record(self.table, position)
        except NotFound:
            logger.info("%s: no record at %s[%r]", target.value, self.table, position)
            return ScreenView(target, self.table, position, error="not_found")
        return ScreenView(target, self.table, position, record=record)

    def navigate(self, target: Screen | str, position: int | None = None) -> ScreenView:
        target = Screen(target)
        with self._lock:
            self.cancel_pending()
            self._check(target)
            view = self._resolve(target, position)
            self.nav.push(view)
        logger.debug("navigated to %s (%s)", target.value, self.breadcrumbs())
        return view

    def request(self, target: Screen | str, position: int | None = None) -> Future:
        """Resolve and commit ``target`` on the worker thread.

        A newer request, ``back()`` or ``home()`` abandons this one: its
        pending query is cancelled and it never commits.
        """
        if self.worker is None:
            raise RuntimeError("request() needs a StoreWorker; use navigate()")
        target = Screen(target)
        with self._lock:
            self.cancel_pending()
            self._check(target)
            scope = Scope(f"{target.value}:{position}")
            self._pending = scope
        return self.worker.submit(self._resolve_and_commit, target, position, scope, scope=scope)

    def _resolve_and_commit(self, target: Screen, position: int | None, scope: Scope) -> ScreenView:
        view = self._resolve(target, position)
        with self._lock:
            if scope.cancelled:
                return view
            self._check(target)
            self.nav.push(view)
            if self._pending is scope:
                self._pending = None
        return view

    def cancel_pending(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def back(self) -> ScreenView:
        """Return to the previous screen; Bookmarks always returns to Main."""
        with self._lock:
            self.cancel_pending()
            if self.current.screen is Screen.BOOKMARK:
                self.nav.home()
            else:
                self.nav.pop()
            return self.current

    def home(self) -> ScreenView:
        with self._lock:
            self.cancel_pending()
            self.nav.home()
            return self.current
