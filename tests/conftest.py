"""Shared fixtures for toggle-pane tests."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

import toggle_pane.config as config
from toggle_pane.controller import ToggleController
from toggle_pane.host import PaneRef
from toggle_pane.registry import StateRegistry
from toggle_pane.snapshot import SnapshotWriter
from toggle_pane.types import Direction, ToggleOptions


# Snapshot the real base dir so we can detect accidental writes.
_REAL_BASE_DIR = Path("~/.config/toggle-pane").expanduser()
_REAL_BASE_EXISTED = _REAL_BASE_DIR.exists()


@pytest.fixture(autouse=True)
def _guard_real_base_dir():
    """Fail the test if it accidentally created the real base directory."""
    yield
    if not _REAL_BASE_EXISTED and _REAL_BASE_DIR.exists():
        pytest.fail(f"Test created the real base directory: {_REAL_BASE_DIR}")


@pytest.fixture(autouse=True)
def base_dir(tmp_path, monkeypatch):
    """Point config at a temp dir for every test."""
    d = tmp_path / "home"
    monkeypatch.setenv("TOGGLE_PANE_HOME", str(d))
    config.init(d)
    yield d
    config.init(d)


@dataclass
class FakeHost:
    """In-memory tmux: tabs of panes, one active pane and a zoom flag per tab.

    Every mutation is appended to `calls` so tests can assert on side effects.
    """

    panes: dict[int, int] = field(default_factory=dict)  # pane_id → tab_id
    active: dict[int, int] = field(default_factory=dict)  # tab_id → active pane_id
    zoomed: dict[int, bool] = field(default_factory=dict)  # tab_id → window zoomed
    calls: list[tuple] = field(default_factory=list)
    next_pane_id: int = 100
    split_lands_in: int | None = None  # Force new panes into another tab
    split_returns_none: bool = False
    server: str | None = "4242 1700000000"  # What server_id() reports

    def add_pane(self, pane_id: int, tab_id: int, active: bool = False) -> PaneRef:
        self.panes[pane_id] = tab_id
        if active or tab_id not in self.active:
            self.active[tab_id] = pane_id
        self.zoomed.setdefault(tab_id, False)
        return PaneRef(pane_id=pane_id, tab_id=tab_id)

    def close_pane(self, pane_id: int) -> None:
        tab_id = self.panes.pop(pane_id)
        if self.active.get(tab_id) == pane_id:
            remaining = [p for p, t in self.panes.items() if t == tab_id]
            if remaining:
                self.active[tab_id] = remaining[0]
            else:
                self.active.pop(tab_id)
        self.zoomed[tab_id] = False

    def move_pane(self, pane_id: int, tab_id: int) -> None:
        self.close_pane(pane_id)
        self.add_pane(pane_id, tab_id)

    def ref(self, pane_id: int) -> PaneRef:
        return PaneRef(pane_id=pane_id, tab_id=self.panes[pane_id])

    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "find_pane"]

    def server_id(self) -> str | None:
        return self.server

    # --- Host protocol ---

    def find_pane(self, pane_id: int) -> PaneRef | None:
        self.calls.append(("find_pane", pane_id))
        tab_id = self.panes.get(pane_id)
        return None if tab_id is None else PaneRef(pane_id=pane_id, tab_id=tab_id)

    def split(self, pane_id: int, direction: Direction, percent: int) -> PaneRef | None:
        self.calls.append(("split", pane_id, direction, percent))
        if self.split_returns_none:
            return None
        new_id = self.next_pane_id
        self.next_pane_id += 1
        tab_id = self.split_lands_in if self.split_lands_in is not None else self.panes[pane_id]
        self.zoomed[tab_id] = False
        return self.add_pane(new_id, tab_id, active=True)

    def activate(self, pane_id: int) -> None:
        self.calls.append(("activate", pane_id))
        self.active[self.panes[pane_id]] = pane_id

    def set_zoom(self, tab_id: int, zoomed: bool) -> None:
        self.calls.append(("set_zoom", tab_id, zoomed))
        self.zoomed[tab_id] = zoomed

    def panes_with_zoom(self, tab_id: int) -> list[tuple[int, bool]]:
        self.calls.append(("panes_with_zoom", tab_id))
        return [
            (pane_id, self.zoomed.get(tab_id, False) and self.active.get(tab_id) == pane_id)
            for pane_id, owner in self.panes.items()
            if owner == tab_id
        ]


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def registry():
    return StateRegistry()


@pytest.fixture
def snapshots(base_dir):
    return SnapshotWriter(base_dir / "tmp")


@pytest.fixture
def make_controller(host, registry, snapshots):
    """Build a controller over the shared fake host, registry, and snapshot dir."""

    def _make(options: ToggleOptions | None = None) -> ToggleController:
        return ToggleController(host, registry, snapshots, options)

    return _make
