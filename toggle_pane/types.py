"""Type definitions for toggle-pane."""

from dataclasses import asdict, dataclass, field
from enum import Enum
import json
import time
from typing import Any

from typing_extensions import Self

from .errors import ConfigError


def _optional_id(value: Any) -> int | None:
    """Normalize a stored pane id; None and the legacy -1 sentinel mean "none"."""
    if value is None:
        return None
    value = int(value)
    return None if value < 0 else value


def _flag(data: dict, key: str, default: bool, prefix: str = "") -> bool:
    """Read a boolean option. JSON strings like "false" are rejected, not coerced."""
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{prefix}{key} must be true or false, got {value!r}")
    return value


@dataclass
class TabState:
    """Toggle state for a single tab.

    pane_id and invoker_id are hints: the panes they name may have been
    closed or moved since they were recorded.
    """

    pane_id: int | None = None  # Managed terminal pane
    invoker_id: int | None = None  # Pane to return focus to
    zoomed: bool = False  # Terminal pane was zoomed when last hidden

    @property
    def is_active(self) -> bool:
        return self.pane_id is not None

    def reset(self) -> None:
        """Forget the terminal pane. Invoker and zoom memory survive."""
        self.pane_id = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create from dict, handling missing fields gracefully."""
        return cls(
            pane_id=_optional_id(data.get("pane_id")),
            invoker_id=_optional_id(data.get("invoker_id")),
            zoomed=bool(data.get("zoomed", False)),
        )


@dataclass
class Snapshot:
    """Advisory on-disk marker naming the active terminal pane of a tab."""

    pane_id: int
    tab_id: int
    active: bool = True
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: str) -> Self:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(data))

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(
            pane_id=int(data["pane_id"]),
            tab_id=int(data["tab_id"]),
            active=bool(data.get("active", True)),
            timestamp=int(data.get("timestamp", 0)),
        )


class Direction(str, Enum):
    """Side of the invoking pane the terminal pane is split off to."""

    UP = "Up"
    DOWN = "Down"
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def parse(cls, value: str) -> "Direction":
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ConfigError(f"Unknown direction {value!r} (expected one of Up, Down, Left, Right)")


@dataclass
class ZoomOptions:
    auto_zoom_toggle_terminal: bool = False  # Zoom the terminal pane whenever it is shown
    auto_zoom_invoker_pane: bool = True  # Zoom the invoker pane when returning to it
    remember_zoomed: bool = False  # Restore the terminal pane's zoom from when it was hidden


@dataclass
class ToggleOptions:
    """Resolved toggle options (defaults merged with user overrides)."""

    key: str = ";"
    mods: str = "CTRL"
    direction: Direction = Direction.UP
    size_percent: int = 20
    change_invoker_id_everytime: bool = False
    zoom: ZoomOptions = field(default_factory=ZoomOptions)

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Build options from the nested config shape, validating values."""
        size = data.get("size") or {}
        if not isinstance(size, dict):
            raise ConfigError(f"size must be a table like {{'percent': 20}}, got {size!r}")
        percent = size.get("percent", size.get("Percent", 20))
        try:
            percent = int(percent)
        except (TypeError, ValueError):
            raise ConfigError(f"size.percent must be an integer, got {percent!r}") from None
        if not 0 <= percent <= 100:
            raise ConfigError(f"size.percent must be between 0 and 100, got {percent}")

        zoom = data.get("zoom") or {}
        if not isinstance(zoom, dict):
            raise ConfigError(f"zoom must be a table, got {zoom!r}")
        defaults = ZoomOptions()
        return cls(
            key=str(data.get("key", ";")),
            mods=str(data.get("mods", "CTRL")),
            direction=Direction.parse(data.get("direction", "Up")),
            size_percent=percent,
            change_invoker_id_everytime=_flag(data, "change_invoker_id_everytime", False),
            zoom=ZoomOptions(
                auto_zoom_toggle_terminal=_flag(
                    zoom, "auto_zoom_toggle_terminal", defaults.auto_zoom_toggle_terminal, "zoom."
                ),
                auto_zoom_invoker_pane=_flag(zoom, "auto_zoom_invoker_pane", defaults.auto_zoom_invoker_pane, "zoom."),
                remember_zoomed=_flag(zoom, "remember_zoomed", defaults.remember_zoomed, "zoom."),
            ),
        )
