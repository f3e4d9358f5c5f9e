"""Tab registry: maps host tab ids to their toggle state.

Entries are created lazily on the first toggle in a tab and never deleted:
tab ids are not reused while the host runs, so the leak is bounded by the
number of tabs ever opened. Stale entries are reset by the controller when
it next touches them.

Every key press runs a fresh `toggle-pane toggle` process, so the CLI loads
the registry from state.json before a toggle and saves it afterwards:
  {"server": "1234 1700000000",
   "tabs": {"<tab_id>": {"pane_id": 42, "invoker_id": 7, "zoomed": false}}}

tmux numbers panes and windows from zero again after a restart, so the ids
are tied to the server that issued them. A registry loaded under a different
server is emptied before use (see bind_server).
"""

import json
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import PersistenceError
from .logging_config import get_logger
from .types import TabState

logger = get_logger(__name__)


class StateRegistry:
    """Process-scoped store of TabState, keyed by tab id."""

    def __init__(self, tabs: dict[int, TabState] | None = None, server: str | None = None):
        self._tabs: dict[int, TabState] = dict(tabs or {})
        self.server = server
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get_or_init(self, tab_id: int) -> TabState:
        """Get the state for a tab, creating an inactive one if needed."""
        state = self._tabs.get(tab_id)
        if state is None:
            logger.info(f"Initializing state for tab {tab_id}")
            state = TabState()
            self._tabs[tab_id] = state
        return state

    def get(self, tab_id: int) -> TabState | None:
        return self._tabs.get(tab_id)

    def tab_ids(self) -> list[int]:
        return sorted(self._tabs)

    def __len__(self) -> int:
        return len(self._tabs)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._tabs

    def bind_server(self, server: str | None) -> list[int]:
        """Tie the registry to the host server that issued its ids.

        If the registry was recorded under another server, every entry is
        dropped and the dropped tab ids are returned so their snapshots can
        be cleared. An unknown server (None) leaves the registry as it is.
        """
        if server is None:
            return []
        dropped: list[int] = []
        if self.server is not None and self.server != server:
            dropped = self.tab_ids()
            logger.info(f"Host server changed ({self.server} -> {server}); forgetting tabs {dropped}")
            self._tabs.clear()
        elif self.server is None and self._tabs:
            # Recorded before the server was known; the ids cannot be trusted
            dropped = self.tab_ids()
            logger.info(f"Registry has no server identity; forgetting tabs {dropped}")
            self._tabs.clear()
        self.server = server
        return dropped

    @contextmanager
    def lock(self, tab_id: int) -> Iterator[None]:
        """Serialize transitions for one tab.

        Two concurrent creations for the same tab would leak a pane.
        """
        with self._locks_guard:
            tab_lock = self._locks.setdefault(tab_id, threading.Lock())
        with tab_lock:
            yield

    # --- Persistence ---

    def to_dict(self) -> dict:
        return {
            "server": self.server,
            "tabs": {str(tab_id): state.to_dict() for tab_id, state in sorted(self._tabs.items())},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StateRegistry":
        tabs: dict[int, TabState] = {}
        for key, value in (data.get("tabs") or {}).items():
            try:
                tabs[int(key)] = TabState.from_dict(value)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed registry entry {key!r}: {e}")
        server = data.get("server")
        return cls(tabs, server=str(server) if server is not None else None)

    @classmethod
    def load(cls, path: Path) -> "StateRegistry":
        """Load the registry from disk. Missing or unreadable file → empty registry."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read registry {path}, starting empty: {e}")
            return cls()
        if not isinstance(data, dict):
            logger.warning(f"Registry {path} is not a JSON object, starting empty")
            return cls()
        return cls.from_dict(data)

    def save(self, path: Path) -> bool:
        """Save the registry to disk. Failures are logged, never raised."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), indent=2) + "\n")
        except OSError as e:
            logger.error(f"Failed to save registry: {PersistenceError(path, e)}")
            return False
        return True
