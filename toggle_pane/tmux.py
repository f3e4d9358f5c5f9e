"""tmux implementation of the Host protocol.

A host tab is a tmux window and a host pane is a tmux pane. tmux ids carry
a sigil (%42 for panes, @3 for windows); everything above this module works
with the bare integers.

Zoom in tmux belongs to the window: `resize-pane -Z` toggles it for the
active pane, so a pane counts as zoomed when it is the active pane of a
zoomed window.
"""

import os
import re
import subprocess

from .errors import HostError
from .host import PaneRef
from .logging_config import get_logger
from .types import Direction

logger = get_logger(__name__)

PANE_FORMAT = "#{pane_id} #{window_id}"
SERVER_FORMAT = "#{pid} #{start_time}"

# tmux split-window flags per direction; -b puts the new pane before (above/left of) the target
_SPLIT_FLAGS: dict[Direction, list[str]] = {
    Direction.UP: ["-v", "-b"],
    Direction.DOWN: ["-v"],
    Direction.LEFT: ["-h", "-b"],
    Direction.RIGHT: ["-h"],
}

_MOD_PREFIXES = {
    "CTRL": "C-",
    "CONTROL": "C-",
    "ALT": "M-",
    "META": "M-",
    "OPT": "M-",
    "SHIFT": "S-",
}


def tmux_binary() -> str:
    return os.environ.get("TOGGLE_PANE_TMUX", "tmux")


def run_tmux(*args: str) -> tuple[int, str, str]:
    """Run tmux command, return (returncode, stdout, stderr)."""
    cmd = [tmux_binary(), *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        return 127, "", str(e)
    return result.returncode, result.stdout, result.stderr


def _parse_id(value: str, sigil: str) -> int:
    value = value.strip()
    if not value.startswith(sigil) or not value[1:].isdigit():
        raise ValueError(f"Not a tmux id with sigil {sigil!r}: {value!r}")
    return int(value[1:])


def parse_pane_id(value: str) -> int:
    """'%42' → 42. Bare digits are accepted too."""
    value = value.strip()
    if value.isdigit():
        return int(value)
    return _parse_id(value, "%")


def parse_window_id(value: str) -> int:
    """'@3' → 3."""
    return _parse_id(value, "@")


def format_pane_id(pane_id: int) -> str:
    return f"%{pane_id}"


def format_window_id(tab_id: int) -> str:
    return f"@{tab_id}"


def _parse_pane_ref(line: str) -> PaneRef | None:
    parts = line.split()
    if len(parts) != 2:
        return None
    try:
        return PaneRef(pane_id=parse_pane_id(parts[0]), tab_id=parse_window_id(parts[1]))
    except ValueError:
        return None


class TmuxHost:
    """Host backed by the tmux server this process can reach."""

    def _check(self, *args: str) -> str:
        """Run a mutating tmux command, raising HostError on failure."""
        code, stdout, stderr = run_tmux(*args)
        if code != 0:
            raise HostError(list(args), code, stderr)
        return stdout

    def server_id(self) -> str | None:
        """Identity of the running server. Ids are only meaningful within one server."""
        code, stdout, stderr = run_tmux("display-message", "-p", SERVER_FORMAT)
        if code != 0:
            logger.debug(f"Server lookup failed: {stderr.strip()}")
            return None
        return stdout.strip() or None

    def find_pane(self, pane_id: int) -> PaneRef | None:
        code, stdout, stderr = run_tmux("display-message", "-p", "-t", format_pane_id(pane_id), PANE_FORMAT)
        if code != 0:
            logger.debug(f"Pane {pane_id} lookup failed: {stderr.strip()}")
            return None
        ref = _parse_pane_ref(stdout.strip())
        if ref is None or ref.pane_id != pane_id:
            # tmux falls back to the current pane for some unresolvable targets
            return None
        return ref

    def split(self, pane_id: int, direction: Direction, percent: int) -> PaneRef | None:
        args = ["split-window", "-t", format_pane_id(pane_id), *_SPLIT_FLAGS[direction]]
        args += ["-l", f"{percent}%", "-P", "-F", PANE_FORMAT]
        stdout = self._check(*args)
        return _parse_pane_ref(stdout.strip())

    def activate(self, pane_id: int) -> None:
        self._check("select-pane", "-t", format_pane_id(pane_id))

    def is_zoomed(self, tab_id: int) -> bool:
        stdout = self._check("display-message", "-p", "-t", format_window_id(tab_id), "#{window_zoomed_flag}")
        return stdout.strip() == "1"

    def set_zoom(self, tab_id: int, zoomed: bool) -> None:
        if self.is_zoomed(tab_id) == zoomed:
            return
        self._check("resize-pane", "-Z", "-t", format_window_id(tab_id))

    def panes_with_zoom(self, tab_id: int) -> list[tuple[int, bool]]:
        stdout = self._check(
            "list-panes", "-t", format_window_id(tab_id), "-F", "#{pane_id} #{pane_active} #{window_zoomed_flag}"
        )
        panes = []
        for line in stdout.splitlines():
            parts = line.split()
            if len(parts) != 3:
                continue
            try:
                pane_id = parse_pane_id(parts[0])
            except ValueError:
                continue
            panes.append((pane_id, parts[1] == "1" and parts[2] == "1"))
        return panes


# --- Key binding ---


def tmux_key(key: str, mods: str = "") -> str:
    """Translate a key + modifier set into tmux key syntax.

    tmux_key(";", "CTRL") → "C-\\;"  (a trailing ; would end the tmux command)
    """
    prefix = ""
    for mod in re.split(r"[|+\s]+", mods.strip()):
        if not mod or mod.upper() == "NONE":
            continue
        try:
            mod_prefix = _MOD_PREFIXES[mod.upper()]
        except KeyError:
            raise ValueError(f"Unknown modifier {mod!r}") from None
        if mod_prefix not in prefix:
            prefix += mod_prefix
    if key == ";":
        key = "\\;"
    return prefix + key


def toggle_command(executable: str = "toggle-pane") -> str:
    """Shell command tmux runs on the key press; tmux expands #{pane_id}."""
    return f"{executable} toggle --pane '#{{pane_id}}' --window '#{{session_name}}'"


def bind_args(key: str, mods: str, executable: str = "toggle-pane") -> list[str]:
    return ["bind-key", "-n", tmux_key(key, mods), "run-shell", toggle_command(executable)]


def bind_toggle_key(key: str, mods: str, executable: str = "toggle-pane") -> None:
    args = bind_args(key, mods, executable)
    code, _, stderr = run_tmux(*args)
    if code != 0:
        raise HostError(args, code, stderr)
    logger.info(f"Bound {tmux_key(key, mods)} to toggle-pane")


def unbind_toggle_key(key: str, mods: str) -> None:
    args = ["unbind-key", "-n", tmux_key(key, mods)]
    code, _, stderr = run_tmux(*args)
    if code != 0:
        raise HostError(args, code, stderr)
