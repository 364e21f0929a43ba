"""Session state for remembering user choices across screens."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class UIState:
    """UI session state - remembers last choices within one TUI session."""

    last_table: str | None = None
    last_position: int | None = None

    # List screen paging, per table
    list_offsets: dict[str, int] = field(default_factory=dict)

    # Session history for debugging
    session_history: list[str] = field(default_factory=list)

    def remember(self, **kwargs) -> None:
        """Update known attributes; unknown keys are ignored.

        Example:
            state.remember(last_table="locations", last_position=3)
        """
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def add_to_history(self, screen: str) -> None:
        self.session_history.append(screen)

    def offset_for(self, table: str) -> int:
        return self.list_offsets.get(table, 0)

    def set_offset(self, table: str, offset: int) -> None:
        self.list_offsets[table] = max(0, offset)
