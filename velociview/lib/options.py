"""Styling and layout options for the stats overlay."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Tuple, Type, TypeVar, Union

from .fields import OverlayField, parse_field, sort_fields
from .fonts import DEFAULT_FONT_FAMILY
from .surface import parse_color


class LayoutMode(str, Enum):
    LIST = "list"
    AUTO = "auto"
    FIXED = "fixed"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class MapPosition(str, Enum):
    TOP = "top"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM = "bottom"
    GRID = "grid"


class BackgroundMode(str, Enum):
    TRANSPARENT = "transparent"
    DARK = "dark"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Union[str, E], option: str) -> E:
    """Coerce a string into an enum member, raising ValueError that names the option."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {option} '{value}' (expected one of: {allowed})") from None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def parse_number(value: Any, option: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {option} '{value}' (expected a number)") from None
    if not math.isfinite(number):
        raise ValueError(f"Invalid {option} '{value}' (expected a finite number)")
    return number


DEFAULT_FIELDS = frozenset({OverlayField.DISTANCE, OverlayField.MOVING_TIME, OverlayField.AVG_SPEED})


@dataclass
class OverlayOptions:
    """
    How the stats box looks and where it goes

    position is the box anchor as a fraction of the slack space left after the box
    is placed: (0, 0) is flush top-left, (1, 1) flush bottom-right.
    """

    selected_fields: FrozenSet[OverlayField] = DEFAULT_FIELDS
    position: Tuple[float, float] = (0.05, 0.95)
    scale: float = 1.0
    font_family: str = DEFAULT_FONT_FAMILY
    primary_color: str = "#ffffff"
    secondary_color: str = "#000000"
    background_mode: BackgroundMode = BackgroundMode.DARK
    background_opacity: float = 0.5
    text_align: TextAlign = TextAlign.LEFT
    layout_mode: LayoutMode = LayoutMode.LIST
    grid_columns: int = 2
    grid_gap_x: float = 1.0
    grid_gap_y: float = 1.0
    map_position: MapPosition = MapPosition.GRID

    def __post_init__(self):
        self.selected_fields = frozenset(parse_field(f) for f in self.selected_fields)
        x, y = self.position
        self.position = (
            _clamp(parse_number(x, "position.x"), 0.0, 1.0),
            _clamp(parse_number(y, "position.y"), 0.0, 1.0),
        )
        self.scale = parse_number(self.scale, "scale")
        if self.scale <= 0:
            raise ValueError(f"Invalid scale '{self.scale}' (must be greater than 0)")
        self.font_family = (self.font_family or "").strip() or DEFAULT_FONT_FAMILY
        parse_color(self.primary_color)
        parse_color(self.secondary_color)
        self.background_mode = parse_enum(BackgroundMode, self.background_mode, "background mode")
        self.background_opacity = _clamp(parse_number(self.background_opacity, "background opacity"), 0.0, 1.0)
        self.text_align = parse_enum(TextAlign, self.text_align, "text alignment")
        self.layout_mode = parse_enum(LayoutMode, self.layout_mode, "layout mode")
        self.grid_columns = max(1, int(parse_number(self.grid_columns, "grid columns")))
        self.grid_gap_x = max(0.0, parse_number(self.grid_gap_x, "grid gap x"))
        self.grid_gap_y = max(0.0, parse_number(self.grid_gap_y, "grid gap y"))
        self.map_position = parse_enum(MapPosition, self.map_position, "map position")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OverlayOptions":
        """
        Build options from a JSON-style mapping with camelCase keys

        Example:
            {"selectedFields": ["distance", "routeMap"], "position": {"x": 0.5, "y": 0.9},
             "textAlign": "center", "gridMode": "auto"}

        Raises:
            ValueError: on unknown keys or invalid values
        """
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = _DICT_KEYS.get(key)
            if attr is None:
                raise ValueError(f"Unknown overlay option '{key}'")
            if attr == "position":
                value = coerce_position(value)
            elif attr == "selected_fields":
                if isinstance(value, str):
                    value = [value]
                if not isinstance(value, (list, tuple)):
                    raise ValueError(f"Invalid {key} '{value}' (expected a list of field ids)")
            kwargs[attr] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectedFields": [f.value for f in sort_fields(self.selected_fields)],
            "position": {"x": self.position[0], "y": self.position[1]},
            "scale": self.scale,
            "fontFamily": self.font_family,
            "primaryColor": self.primary_color,
            "secondaryColor": self.secondary_color,
            "backgroundMode": self.background_mode.value,
            "backgroundOpacity": self.background_opacity,
            "textAlign": self.text_align.value,
            "gridMode": self.layout_mode.value,
            "gridColumns": self.grid_columns,
            "gridGapX": self.grid_gap_x,
            "gridGapY": self.grid_gap_y,
            "mapPosition": self.map_position.value,
        }


def coerce_position(value: Any) -> Tuple[float, float]:
    if isinstance(value, Mapping):
        if "x" not in value or "y" not in value:
            raise ValueError("Invalid position (expected an object with x and y)")
        return value["x"], value["y"]
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    raise ValueError(f"Invalid position '{value}' (expected {{x, y}} or [x, y])")


_DICT_KEYS = {
    "selectedFields": "selected_fields",
    "fields": "selected_fields",
    "position": "position",
    "scale": "scale",
    "fontFamily": "font_family",
    "primaryColor": "primary_color",
    "secondaryColor": "secondary_color",
    "backgroundMode": "background_mode",
    "backgroundOpacity": "background_opacity",
    "textAlign": "text_align",
    "gridMode": "layout_mode",
    "layoutMode": "layout_mode",
    "gridColumns": "grid_columns",
    "gridGapX": "grid_gap_x",
    "gridGapY": "grid_gap_y",
    "mapPosition": "map_position",
}
