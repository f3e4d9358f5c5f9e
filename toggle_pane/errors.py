"""Error taxonomy for the toggle controller.

Stale references are expected: panes are closed and moved behind our back
all the time, so StaleReferenceError is raised and handled inside a single
transition. TopologyInconsistency means the host told us something that
cannot be true and is never retried. PersistenceError is only ever logged.
"""


class ToggleError(Exception):
    """Base exception for toggle-pane."""

    pass


class StaleReferenceError(ToggleError):
    """A tracked pane id no longer resolves, or resolves into another tab."""

    def __init__(self, pane_id: int | None, tab_id: int, reason: str):
        self.pane_id = pane_id
        self.tab_id = tab_id
        self.reason = reason
        super().__init__(f"Pane {pane_id} for tab {tab_id} is stale: {reason}")


class TopologyInconsistency(ToggleError):
    """The host reported a layout that contradicts what we just did to it."""

    pass


class PersistenceError(ToggleError):
    """Snapshot or registry file could not be written, removed, or created."""

    def __init__(self, path, error: Exception):
        self.path = path
        self.error = error
        super().__init__(f"{path}: {error}")


class HostError(ToggleError):
    """A host (tmux) command failed."""

    def __init__(self, args: list[str], returncode: int, stderr: str):
        self.command = args
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"tmux {' '.join(args)} failed ({returncode}): {stderr.strip()}")


class ConfigError(ToggleError, ValueError):
    """Invalid toggle options."""

    pass
