"""Per-tab snapshot files for companion tools.

A snapshot names the active terminal pane of a tab:
  {base}/tmp/toggle_pane_tab_{tab_id}.json
  {"pane_id": 42, "tab_id": 7, "active": true, "timestamp": 1760000000}

The file is deleted when the tab's terminal pane is reset. Writes are
best-effort: failures are logged and never reach the caller.
"""

import json
import re
from pathlib import Path

from .config import snapshot_dir
from .errors import PersistenceError
from .logging_config import get_logger
from .types import Snapshot

logger = get_logger(__name__)

SNAPSHOT_PREFIX = "toggle_pane_tab_"
_SNAPSHOT_NAME_RE = re.compile(rf"^{SNAPSHOT_PREFIX}(\d+)\.json$")


def tab_id_from_path(path: Path) -> int | None:
    """Tab id encoded in a snapshot filename, or None for unrelated files."""
    match = _SNAPSHOT_NAME_RE.match(path.name)
    return int(match.group(1)) if match else None


class SnapshotWriter:
    """Writes and removes snapshot files in a single directory."""

    def __init__(self, directory: Path | None = None):
        if directory is None:
            directory = snapshot_dir()
        self.directory = directory

    def path_for(self, tab_id: int) -> Path:
        return self.directory / f"{SNAPSHOT_PREFIX}{tab_id}.json"

    def write(self, tab_id: int, pane_id: int) -> bool:
        """Mark pane_id as the active terminal pane of tab_id."""
        try:
            self._write(tab_id, pane_id)
        except PersistenceError as e:
            logger.error(f"Failed to write snapshot for tab {tab_id}: {e}")
            return False
        return True

    def clear(self, tab_id: int) -> bool:
        """Delete the snapshot for tab_id. An absent file is fine."""
        try:
            self._remove(tab_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete snapshot for tab {tab_id}: {e}")
            return False
        return True

    def read(self, tab_id: int) -> Snapshot | None:
        return self._read_path(self.path_for(tab_id))

    def read_all(self) -> dict[int, Snapshot]:
        """All readable snapshots in the directory, keyed by tab id."""
        snapshots: dict[int, Snapshot] = {}
        if not self.directory.is_dir():
            return snapshots
        for path in sorted(self.directory.glob(f"{SNAPSHOT_PREFIX}*.json")):
            tab_id = tab_id_from_path(path)
            if tab_id is None:
                continue
            snapshot = self._read_path(path)
            if snapshot is not None:
                snapshots[tab_id] = snapshot
        return snapshots

    def _read_path(self, path: Path) -> Snapshot | None:
        try:
            return Snapshot.from_json(path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable snapshot {path}: {e}")
            return None

    def _ensure_directory(self) -> None:
        if self.directory.is_dir():
            return
        logger.info(f"Snapshot directory does not exist, creating: {self.directory}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(self.directory, e) from e

    def _write(self, tab_id: int, pane_id: int) -> None:
        self._ensure_directory()
        path = self.path_for(tab_id)
        logger.info(f"Writing toggle pane snapshot: {path}")
        try:
            path.write_text(Snapshot(pane_id=pane_id, tab_id=tab_id).to_json())
        except OSError as e:
            raise PersistenceError(path, e) from e

    def _remove(self, tab_id: int) -> None:
        path = self.path_for(tab_id)
        if path.exists():
            logger.info(f"Clearing toggle pane snapshot: {path}")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(path, e) from e
