"""Configuration and path helpers, safe to import from anywhere.

Call init(base_dir) once at startup before accessing any paths.

Layout:
  {base}/config.json                      user option overrides
  {base}/state.json                       tab registry (survives between key presses)
  {base}/tmp/toggle_pane_tab_{tab}.json   per-tab snapshots for companion tools
  {base}/logs/                            log files
"""

import copy
import json
import os
from pathlib import Path
from typing import Any

from .logging_config import get_logger
from .types import ToggleOptions

logger = get_logger(__name__)

DEFAULT_BASE_DIR = Path(os.path.expanduser("~/.config/toggle-pane"))

_base_dir: Path | None = None


def default_base_dir() -> Path:
    """Base directory from $TOGGLE_PANE_HOME, falling back to ~/.config/toggle-pane."""
    env = os.environ.get("TOGGLE_PANE_HOME")
    if env:
        return Path(env).expanduser()
    return DEFAULT_BASE_DIR


def init(base_dir: Path | None = None) -> None:
    """Set the base directory. Must be called before any other config access."""
    global _base_dir, _options_cache, _options_mtime
    _base_dir = Path(base_dir) if base_dir is not None else default_base_dir()
    _options_cache = None
    _options_mtime = 0.0


def base_dir() -> Path:
    """Get the base directory. Raises if init() hasn't been called."""
    if _base_dir is None:
        raise RuntimeError("config.init() not called")
    return _base_dir


def config_file() -> Path:
    return base_dir() / "config.json"


def state_file() -> Path:
    return base_dir() / "state.json"


def snapshot_dir() -> Path:
    return base_dir() / "tmp"


def log_dir() -> Path:
    return base_dir() / "logs"


DEFAULT_OPTIONS: dict[str, Any] = {
    "key": ";",
    "mods": "CTRL",
    "direction": "Up",
    "size": {"percent": 20},
    "change_invoker_id_everytime": False,
    "zoom": {
        "auto_zoom_toggle_terminal": False,
        "auto_zoom_invoker_pane": True,
        "remember_zoomed": False,
    },
}


def deep_merge(defaults: dict[str, Any], overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Merge overrides over defaults. Nested dicts merge; anything else replaces.

    Neither argument is modified.
    """
    merged = copy.deepcopy(defaults)
    if not overrides:
        return merged
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


# User overrides, read from config.json, cached with mtime check
_options_cache: dict[str, Any] | None = None
_options_mtime: float = 0.0


def load_user_options() -> dict[str, Any]:
    """Load config.json overrides, with mtime caching. Missing or corrupt file → {}."""
    global _options_cache, _options_mtime
    path = config_file()
    try:
        mtime = path.stat().st_mtime
    except OSError:
        mtime = 0.0
    if _options_cache is None or mtime != _options_mtime:
        loaded: dict[str, Any] = {}
        if path.exists():
            try:
                data = json.loads(path.read_text())
                if isinstance(data, dict):
                    loaded = data
                else:
                    logger.error(f"Ignoring {path}: expected a JSON object")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Ignoring unreadable config {path}: {e}")
        _options_cache = loaded
        _options_mtime = mtime
    return _options_cache


def get_options(overrides: dict[str, Any] | None = None) -> ToggleOptions:
    """Resolve options: defaults ← config.json ← explicit overrides.

    Raises ConfigError if the merged result is invalid.
    """
    merged = deep_merge(DEFAULT_OPTIONS, load_user_options())
    merged = deep_merge(merged, overrides)
    return ToggleOptions.from_dict(merged)
