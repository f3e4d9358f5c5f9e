"""What the toggle controller needs from the terminal multiplexer.

Panes and tabs are never held as live handles. They are plain integer ids
that must be looked up again before every use, because the user can close
or move them at any moment.
"""

from dataclasses import dataclass
from typing import Protocol

from .types import Direction


@dataclass(frozen=True)
class PaneRef:
    """Where a pane lived at the moment it was looked up."""

    pane_id: int
    tab_id: int


class Host(Protocol):
    def find_pane(self, pane_id: int) -> PaneRef | None:
        """Look up a pane. None means it no longer exists; that is not an error."""
        ...

    def split(self, pane_id: int, direction: Direction, percent: int) -> PaneRef | None:
        """Split pane_id and return the newly active pane."""
        ...

    def activate(self, pane_id: int) -> None: ...

    def set_zoom(self, tab_id: int, zoomed: bool) -> None: ...

    def panes_with_zoom(self, tab_id: int) -> list[tuple[int, bool]]:
        """Every pane in the tab with whether it is the zoomed one."""
        ...
