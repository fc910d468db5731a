"""
Overlay engine: field catalog, formatting, layout, and rendering
"""

from .fields import OverlayField, OVERLAY_FIELD_ORDER, get_field_label
from .stats import RawStats, RoutePoint, StatValues, UnitSystem, format_stats
from .activity_parser import ActivityDecodeError, parse_activity
from .options import OverlayOptions
from .overlay import RenderResult, render_overlay
from .surface import PillowSurface
from .composer import ComposeRequest, ComposeResult, compose_overlay

__all__ = [
    "OverlayField",
    "OVERLAY_FIELD_ORDER",
    "get_field_label",
    "RawStats",
    "RoutePoint",
    "StatValues",
    "UnitSystem",
    "format_stats",
    "ActivityDecodeError",
    "parse_activity",
    "OverlayOptions",
    "RenderResult",
    "render_overlay",
    "PillowSurface",
    "ComposeRequest",
    "ComposeResult",
    "compose_overlay",
]
