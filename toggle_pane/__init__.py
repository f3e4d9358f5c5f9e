"""Toggle a per-window terminal pane in tmux.

PUBLIC API:
  - ToggleController: create/show/hide state machine
  - StateRegistry: per-tab toggle state
  - SnapshotWriter: per-tab snapshot files for companion tools
  - TmuxHost: tmux implementation of the Host protocol
"""

from .controller import ToggleAction, ToggleController, ToggleResult
from .host import Host, PaneRef
from .registry import StateRegistry
from .snapshot import SnapshotWriter
from .tmux import TmuxHost
from .types import Direction, Snapshot, TabState, ToggleOptions, ZoomOptions

__all__ = [
    "Direction",
    "Host",
    "PaneRef",
    "Snapshot",
    "SnapshotWriter",
    "StateRegistry",
    "TabState",
    "TmuxHost",
    "ToggleAction",
    "ToggleController",
    "ToggleOptions",
    "ToggleResult",
    "ZoomOptions",
]
