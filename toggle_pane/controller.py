"""Toggle controller: the per-tab create/show/hide state machine.

The state of a tab is never stored directly. It is derived on every
trigger from the registry's TabState and a fresh look at the host:

  Inactive         no terminal pane tracked (pane_id is None)
  ActiveElsewhere  terminal pane is live in this tab, focus is elsewhere
  ActiveFocused    terminal pane is live in this tab and has focus
  Stale            tracked pane is gone or lives in another tab

Stale is resolved immediately by resetting to Inactive. Each transition
performs at most one pane-management action (split, show, or hide) and at
most one retry, which only happens when the invoker pane has vanished
while the terminal pane is focused.
"""

from dataclasses import dataclass
from enum import Enum

from .errors import StaleReferenceError, TopologyInconsistency
from .host import Host, PaneRef
from .logging_config import get_logger
from .registry import StateRegistry
from .snapshot import SnapshotWriter
from .types import TabState, ToggleOptions

logger = get_logger(__name__)

MAX_ATTEMPTS = 2  # First pass plus one retry after an invoker reset


class ToggleAction(str, Enum):
    CREATED = "created"
    SHOWN = "shown"
    HIDDEN = "hidden"
    FAILED = "failed"


@dataclass
class ToggleResult:
    """Outcome of one trigger, for logging and the CLI exit status."""

    action: ToggleAction
    tab_id: int
    pane_id: int | None  # Terminal pane after the transition
    retried: bool = False


class ToggleController:
    """Creates, shows, and hides one terminal pane per tab."""

    def __init__(
        self,
        host: Host,
        registry: StateRegistry,
        snapshots: SnapshotWriter,
        options: ToggleOptions | None = None,
    ):
        self.host = host
        self.registry = registry
        self.snapshots = snapshots
        self.options = options or ToggleOptions()

    def on_toggle_trigger(self, window: str | None, pane: PaneRef) -> ToggleResult:
        """Entry point bound to the toggle key chord."""
        logger.info(f"Toggle terminal action triggered in tab {pane.tab_id} (window {window or '?'})")
        result = self.toggle(pane)
        logger.info(
            f"Tab {result.tab_id}: {result.action.value}, terminal pane {result.pane_id}"
            + (" (after retry)" if result.retried else "")
        )
        return result

    def toggle(self, pane: PaneRef) -> ToggleResult:
        """Run one transition for the tab the invoking pane lives in."""
        tab_id = pane.tab_id
        with self.registry.lock(tab_id):
            state = self.registry.get_or_init(tab_id)
            for attempt in range(MAX_ATTEMPTS):
                try:
                    action = self._transition(pane, state)
                except StaleReferenceError as e:
                    logger.warning(f"{e}. Resetting tab {tab_id} and retrying")
                    # Forget the invoker too so the retry re-captures the triggering pane
                    state.invoker_id = None
                    self._reset(tab_id, state)
                    continue
                return ToggleResult(action=action, tab_id=tab_id, pane_id=state.pane_id, retried=attempt > 0)

        logger.error(f"Toggle for tab {tab_id} did not settle after {MAX_ATTEMPTS} attempts")
        return ToggleResult(action=ToggleAction.FAILED, tab_id=tab_id, pane_id=state.pane_id, retried=True)

    # --- Transition ---

    def _transition(self, pane: PaneRef, state: TabState) -> ToggleAction:
        tab_id = pane.tab_id
        self._capture_invoker(pane, state)

        terminal = self._resolve_terminal(tab_id, state)
        if terminal is None:
            return self._create(pane, state)
        if terminal.pane_id == pane.pane_id:
            return self._hide(tab_id, terminal, state)
        return self._show(tab_id, terminal, state)

    def _capture_invoker(self, pane: PaneRef, state: TabState) -> None:
        if state.invoker_id is None or (
            self.options.change_invoker_id_everytime and state.pane_id != pane.pane_id
        ):
            state.invoker_id = pane.pane_id
            logger.info(f"Setting invoker pane for tab {pane.tab_id}: {state.invoker_id}")

    def _resolve_terminal(self, tab_id: int, state: TabState) -> PaneRef | None:
        """The live terminal pane for this tab, resetting the tab if it went stale."""
        if state.pane_id is None:
            return None
        try:
            terminal = self._validate(state.pane_id, tab_id, "terminal")
        except StaleReferenceError as e:
            logger.info(f"{e}. Resetting state")
            self._reset(tab_id, state)
            return None
        logger.debug(f"Found existing terminal pane {terminal.pane_id} for tab {tab_id}")
        return terminal

    def _create(self, pane: PaneRef, state: TabState) -> ToggleAction:
        tab_id = pane.tab_id
        logger.info(f"Terminal pane not found for tab {tab_id}. Creating a new one")
        try:
            new_pane = self.host.split(pane.pane_id, self.options.direction, self.options.size_percent)
            if new_pane is None:
                raise TopologyInconsistency(f"split of pane {pane.pane_id} reported no new pane")
            if new_pane.tab_id != tab_id:
                raise TopologyInconsistency(
                    f"new pane {new_pane.pane_id} reports tab {new_pane.tab_id}, expected {tab_id}"
                )
        except TopologyInconsistency as e:
            logger.error(f"Failed to create or identify new pane in tab {tab_id}: {e}")
            self._reset(tab_id, state)
            return ToggleAction.FAILED

        state.pane_id = new_pane.pane_id
        if state.invoker_id is None:
            state.invoker_id = pane.pane_id
        logger.info(f"Created terminal pane for tab {tab_id}: {state.pane_id}, invoker {state.invoker_id}")

        self._publish(tab_id, state.pane_id)
        if self.options.zoom.auto_zoom_toggle_terminal:
            self.host.set_zoom(tab_id, True)
        return ToggleAction.CREATED

    def _show(self, tab_id: int, terminal: PaneRef, state: TabState) -> ToggleAction:
        zoom = self.options.zoom
        self.host.set_zoom(tab_id, False)
        logger.info(f"Activating terminal pane for tab {tab_id}: {terminal.pane_id}")
        self.host.activate(terminal.pane_id)
        if (state.zoomed and zoom.remember_zoomed) or zoom.auto_zoom_toggle_terminal:
            self.host.set_zoom(tab_id, True)
        self._publish(tab_id, terminal.pane_id)
        return ToggleAction.SHOWN

    def _hide(self, tab_id: int, terminal: PaneRef, state: TabState) -> ToggleAction:
        """Return focus to the invoker. Raises StaleReferenceError if it is gone."""
        invoker = self._validate(state.invoker_id, tab_id, "invoker")
        zoom = self.options.zoom

        if zoom.remember_zoomed:
            for pane_id, is_zoomed in self.host.panes_with_zoom(tab_id):
                if pane_id == terminal.pane_id:
                    state.zoomed = is_zoomed
                    break

        self.host.set_zoom(tab_id, False)
        logger.info(f"Returning to invoker pane {invoker.pane_id} in tab {tab_id}")
        self.host.activate(invoker.pane_id)
        if zoom.auto_zoom_invoker_pane:
            self.host.set_zoom(tab_id, True)
        # The snapshot stays: a hidden terminal pane is still the tab's terminal pane
        return ToggleAction.HIDDEN

    # --- Helpers ---

    def _validate(self, pane_id: int | None, tab_id: int, role: str) -> PaneRef:
        if pane_id is None:
            raise StaleReferenceError(pane_id, tab_id, f"no {role} pane recorded")
        found = self.host.find_pane(pane_id)
        if found is None:
            raise StaleReferenceError(pane_id, tab_id, f"{role} pane no longer exists")
        if found.tab_id != tab_id:
            raise StaleReferenceError(pane_id, tab_id, f"{role} pane belongs to tab {found.tab_id}")
        return found

    def _reset(self, tab_id: int, state: TabState) -> None:
        state.reset()
        self.snapshots.clear(tab_id)

    def _publish(self, tab_id: int, pane_id: int) -> None:
        """Write the snapshot, or clear it if the pane vanished in the meantime."""
        if self.host.find_pane(pane_id) is None:
            logger.warning(f"Attempted to write snapshot for missing pane {pane_id}; clearing tab {tab_id}")
            self.snapshots.clear(tab_id)
            return
        self.snapshots.write(tab_id, pane_id)
