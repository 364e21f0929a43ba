"""Main router and screen registry for the TUI."""
from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import CancelledError
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from ..errors import InvalidTable, InvalidTransition, StoreUnavailable
from ..navigation import NavigationController, Screen, ScreenView
from ..worker import Scope
from .components import render_error

if TYPE_CHECKING:
    from rich.console import Console

    from ..favorites import FavoriteRegistry
    from ..maps import MapProvider
    from ..settings import Settings
    from .state import UIState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Go:
    """Screen result asking for a forward move."""

    screen: Screen
    position: int | None = None


NavResult = Union[str, Go, None]


class Router:
    """Main navigation loop with screen dispatch.

    Screens return "exit", "back", "home", a :class:`Go`, or None to redraw.
    Store access goes through :meth:`query` so it runs on the controller's
    worker thread while the console shows a spinner.
    """

    def __init__(
        self,
        console: Console,
        settings: Settings,
        state: UIState,
        controller: NavigationController,
        registry_factory: Callable[[str], FavoriteRegistry],
        maps: MapProvider,
    ):
        self.console = console
        self.settings = settings
        self.state = state
        self.controller = controller
        self.registry_factory = registry_factory
        self.maps = maps
        self._scope: Scope | None = None

    @property
    def view(self) -> ScreenView:
        return self.controller.current

    @property
    def store(self):
        return self.controller.store

    def registry(self) -> FavoriteRegistry:
        return self.registry_factory(self.controller.table)

    def query(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a store call off the interactive thread and wait for it."""
        worker = self.controller.worker
        if worker is None:
            return fn(*args, **kwargs)
        if self._scope is None or self._scope.cancelled:
            self._scope = Scope(self.view.screen.value)
        fut = worker.submit(fn, *args, scope=self._scope, **kwargs)
        try:
            with self.console.status("[dim]Loading…[/dim]"):
                return fut.result()
        except KeyboardInterrupt:
            self._abandon_scope()
            raise

    def _abandon_scope(self) -> None:
        if self._scope is not None:
            self._scope.cancel()
            self._scope = None

    def go(self, target: Go) -> bool:
        """Move forward; the new screen is entered only once its record has
        been resolved. Returns False if the move was refused."""
        self._abandon_scope()
        try:
            if self.controller.worker is not None:
                fut = self.controller.request(target.screen, target.position)
                with self.console.status("[dim]Loading…[/dim]"):
                    fut.result()
            else:
                self.controller.navigate(target.screen, target.position)
        except InvalidTransition as e:
            logger.warning("refused navigation: %s", e)
            render_error(self.console, "Can't go there", str(e))
            return False
        except InvalidTable as e:
            render_error(self.console, "Unknown table", str(e), action="Check LOCFAV_TABLES")
            return False
        except StoreUnavailable as e:
            logger.error("navigation to %s failed: %s", target.screen.value, e)
            render_error(
                self.console,
                "Store unavailable",
                str(e),
                action=f"Check that {e.db_path} exists and is readable, then retry",
            )
            return False
        except (KeyboardInterrupt, CancelledError):
            self.controller.cancel_pending()
            return False
        if target.position is not None:
            self.state.remember(last_position=target.position)
        return True

    def run(self) -> None:
        """Dispatch to screen functions until "exit" is received."""
        while True:
            view = self.controller.current
            self.state.add_to_history(view.screen.value)

            screen_fn = SCREENS.get(view.screen)

            if screen_fn is None:
                self.console.print(
                    f"[yellow]Warning:[/yellow] No screen registered for '{view.screen.value}', "
                    "returning to main menu"
                )
                self.controller.home()
                continue

            try:
                result = screen_fn(self)
            except KeyboardInterrupt:
                self.console.print("\n[dim]Interrupted. Returning to main menu...[/]")
                self._abandon_scope()
                self.controller.home()
                continue
            except StoreUnavailable as e:
                logger.error("screen %s failed: %s", view.screen.value, e)
                render_error(
                    self.console,
                    "Store unavailable",
                    str(e),
                    action=f"Check that {e.db_path} exists and is readable",
                )
                result = "back"

            result = self._normalize_nav_result(result)

            if result == "exit":
                self.console.print("\n[dim]Goodbye![/]")
                self._abandon_scope()
                break
            elif result == "home":
                self._abandon_scope()
                self.controller.home()
            elif result == "back":
                self._abandon_scope()
                self.controller.back()
            elif isinstance(result, Go):
                self.go(result)
            # None: stay on the current screen and redraw

    @staticmethod
    def _normalize_nav_result(result: NavResult) -> NavResult:
        """Normalize common nav aliases/titles to canonical commands.

        Prompts may return rendered labels such as "← Back" instead of the
        internal value "back".
        """
        if result is None or isinstance(result, Go):
            return result
        s = str(result).strip().lower()
        if not s:
            return None
        if s in {"back", "← back", "< back", "go back", "previous", "prev", "b"}:
            return "back"
        if s in {"home", "main", "main menu", "h"}:
            return "home"
        if s in {"exit", "quit", "q", "x"}:
            return "exit"
        return str(result)


# Screen registry - maps screens to handler functions
SCREENS: dict[Screen, Callable[[Router], NavResult]] = {}


def register_screen(screen: Screen):
    """Decorator to register a screen function.

    Usage:
        @register_screen(Screen.MAIN)
        def show_main(router: Router) -> NavResult:
            ...
    """
    def decorator(fn: Callable[[Router], NavResult]):
        SCREENS[Screen(screen)] = fn
        return fn
    return decorator
