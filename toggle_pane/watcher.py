"""Snapshot watcher: follows terminal pane snapshots for companion tools.

Editor plugins and status bars want to know which pane is the terminal
pane of a tab without polling tmux. This watches the snapshot directory
and reports every snapshot written or removed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from watchfiles import Change, awatch

from .logging_config import get_logger
from .snapshot import SnapshotWriter, tab_id_from_path
from .types import Snapshot

logger = get_logger(__name__)


@dataclass
class SnapshotEvent:
    """A tab's terminal pane changed. snapshot is None when it was cleared."""

    tab_id: int
    snapshot: Snapshot | None


def event_for_change(change: Change, path: Path, reader: SnapshotWriter) -> SnapshotEvent | None:
    """Translate one filesystem change into a SnapshotEvent, or None to skip it."""
    tab_id = tab_id_from_path(path)
    if tab_id is None:
        return None
    if change == Change.deleted:
        return SnapshotEvent(tab_id=tab_id, snapshot=None)
    snapshot = reader.read(tab_id)
    if snapshot is None:
        # Removed or half-written before we got to it; a later change will follow
        return None
    return SnapshotEvent(tab_id=tab_id, snapshot=snapshot)


class SnapshotWatcher:
    """Delivers SnapshotEvents for a snapshot directory to a callback."""

    def __init__(
        self,
        callback: Callable[[SnapshotEvent], Awaitable[object]],
        directory: Path | None = None,
        emit_existing: bool = True,
    ) -> None:
        self._callback = callback
        self._reader = SnapshotWriter(directory)
        self._emit_existing = emit_existing
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def directory(self) -> Path:
        return self._reader.directory

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Launch the background watch task."""
        self.directory.mkdir(parents=True, exist_ok=True)
        self._stop_event.clear()
        if self._emit_existing:
            for tab_id, snapshot in self._reader.read_all().items():
                await self._deliver(SnapshotEvent(tab_id=tab_id, snapshot=snapshot))
        self._task = asyncio.create_task(self._watch())

    async def stop(self) -> None:
        """Stop watching and wait for the task to finish."""
        self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def wait(self) -> None:
        """Block until the watch task ends."""
        if self._task:
            await self._task

    async def _watch(self) -> None:
        try:
            async for changes in awatch(self.directory, stop_event=self._stop_event):
                for change, path_str in sorted(changes, key=lambda c: c[1]):
                    event = event_for_change(change, Path(path_str), self._reader)
                    if event is not None:
                        await self._deliver(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Snapshot watch loop error")

    async def _deliver(self, event: SnapshotEvent) -> None:
        try:
            await self._callback(event)
        except Exception:
            logger.exception(f"Failed to deliver snapshot event for tab {event.tab_id}")
