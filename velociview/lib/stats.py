"""Raw activity statistics and their display-string formatting."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .fields import OverlayField
from . import metrics


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"

    @classmethod
    def parse(cls, value: Union[str, "UnitSystem", None]) -> "UnitSystem":
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls.METRIC
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown unit system '{value}' (expected metric or imperial)") from None


@dataclass(frozen=True)
class RoutePoint:
    """A single GPS position in degrees."""

    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass
class RawStats:
    """Numeric statistics decoded from an activity file (SI units)."""

    distance_m: float
    moving_time_s: float
    avg_speed_mps: float
    max_speed_mps: float
    ascent_m: float
    descent_m: float
    max_elevation_m: Optional[float] = None
    min_elevation_m: Optional[float] = None
    avg_elevation_m: Optional[float] = None
    route_points: List[RoutePoint] = field(default_factory=list)
    track_name: Optional[str] = None
    track_description: Optional[str] = None

    @property
    def has_elevation_data(self) -> bool:
        return self.max_elevation_m is not None and self.min_elevation_m is not None


@dataclass(frozen=True)
class StatValues:
    """
    Pre-formatted display strings, one per overlay field

    Optional fields are None when the source activity cannot provide them; such
    fields are never rendered, even when selected.
    """

    distance: str
    moving_time: str
    avg_speed: str
    max_speed: str
    ascent: str
    descent: str
    avg_pace: Optional[str] = None
    max_pace: Optional[str] = None
    max_elevation: Optional[str] = None
    min_elevation: Optional[str] = None
    avg_elevation: Optional[str] = None
    route_points: Tuple[RoutePoint, ...] = ()
    track_name: Optional[str] = None
    track_description: Optional[str] = None

    def value_for(self, overlay_field: OverlayField) -> Optional[str]:
        """Display string for a text field, or None when unavailable (always None for the route map)."""
        attr = _FIELD_ATTRS.get(OverlayField(overlay_field))
        if attr is None:
            return None
        return getattr(self, attr)

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly representation keyed by overlay field id."""
        data: Dict[str, object] = {
            f.value: self.value_for(f) for f in _FIELD_ATTRS if self.value_for(f) is not None
        }
        data["routePoints"] = [p.to_dict() for p in self.route_points]
        if self.track_name:
            data["trackName"] = self.track_name
        if self.track_description:
            data["trackDescription"] = self.track_description
        return data


_FIELD_ATTRS: Dict[OverlayField, str] = {
    OverlayField.DISTANCE: "distance",
    OverlayField.MOVING_TIME: "moving_time",
    OverlayField.AVG_SPEED: "avg_speed",
    OverlayField.MAX_SPEED: "max_speed",
    OverlayField.AVG_PACE: "avg_pace",
    OverlayField.MAX_PACE: "max_pace",
    OverlayField.ASCENT: "ascent",
    OverlayField.DESCENT: "descent",
    OverlayField.MAX_ELEVATION: "max_elevation",
    OverlayField.MIN_ELEVATION: "min_elevation",
    OverlayField.AVG_ELEVATION: "avg_elevation",
}


def _pace(speed_mps: float, units: UnitSystem) -> Optional[str]:
    if speed_mps <= 0:
        return None
    if units is UnitSystem.IMPERIAL:
        return metrics.format_pace_imperial(metrics.pace_min_per_mile(speed_mps))
    return metrics.format_pace(metrics.pace_min_per_km(speed_mps))


def _optional_elevation(meters: Optional[float], units: str) -> Optional[str]:
    if meters is None:
        return None
    return metrics.format_elevation(meters, units)


def format_stats(raw: RawStats, units: Union[str, UnitSystem] = UnitSystem.METRIC) -> StatValues:
    """
    Convert raw numeric stats into the display strings shown in the overlay

    Args:
        raw: Decoded activity statistics
        units: "metric" or "imperial"

    Returns:
        StatValues with pace fields omitted for non-positive speeds and
        elevation extremes omitted when the activity carries no elevation
    """
    unit_system = UnitSystem.parse(units)
    u = unit_system.value
    return StatValues(
        distance=metrics.format_distance(raw.distance_m, u),
        moving_time=metrics.format_duration(raw.moving_time_s),
        avg_speed=metrics.format_speed(raw.avg_speed_mps, u),
        max_speed=metrics.format_speed(raw.max_speed_mps, u),
        ascent=metrics.format_elevation(raw.ascent_m, u),
        descent=metrics.format_elevation(raw.descent_m, u),
        avg_pace=_pace(raw.avg_speed_mps, unit_system),
        max_pace=_pace(raw.max_speed_mps, unit_system),
        max_elevation=_optional_elevation(raw.max_elevation_m, u),
        min_elevation=_optional_elevation(raw.min_elevation_m, u),
        avg_elevation=_optional_elevation(raw.avg_elevation_m, u),
        route_points=tuple(raw.route_points),
        track_name=raw.track_name,
        track_description=raw.track_description,
    )
