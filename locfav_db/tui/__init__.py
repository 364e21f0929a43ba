"""Terminal UI for browsing records and favorites.

Screens are plain functions registered on the router; navigation state lives
in :class:`~locfav_db.navigation.NavigationController`.
"""
from .router import Go, Router
from .state import UIState

__all__ = ["Go", "Router", "UIState"]
