"""Catalog of the stat fields that can be shown in the overlay."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Union


class OverlayField(str, Enum):
    """A selectable overlay field. Declaration order is the canonical display order."""

    DISTANCE = "distance"
    MOVING_TIME = "movingTime"
    AVG_SPEED = "avgSpeed"
    MAX_SPEED = "maxSpeed"
    AVG_PACE = "avgPace"
    MAX_PACE = "maxPace"
    ASCENT = "ascent"
    DESCENT = "descent"
    MAX_ELEVATION = "maxElevation"
    MIN_ELEVATION = "minElevation"
    AVG_ELEVATION = "avgElevation"
    ROUTE_MAP = "routeMap"


OVERLAY_FIELD_ORDER = tuple(OverlayField)

OVERLAY_FIELD_LABELS: Dict[OverlayField, str] = {
    OverlayField.DISTANCE: "Distance",
    OverlayField.MOVING_TIME: "Duration",
    OverlayField.AVG_SPEED: "Average Speed",
    OverlayField.MAX_SPEED: "Max Speed",
    OverlayField.AVG_PACE: "Average Pace",
    OverlayField.MAX_PACE: "Max Pace",
    OverlayField.ASCENT: "Uphill",
    OverlayField.DESCENT: "Downhill",
    OverlayField.MAX_ELEVATION: "Max Elevation",
    OverlayField.MIN_ELEVATION: "Min Elevation",
    OverlayField.AVG_ELEVATION: "Average Elevation",
    OverlayField.ROUTE_MAP: "Route Map",
}

_FIELD_RANK = {field: index for index, field in enumerate(OVERLAY_FIELD_ORDER)}


def get_field_label(field: OverlayField) -> str:
    """Return the human readable label for a field."""
    return OVERLAY_FIELD_LABELS[OverlayField(field)]


def parse_field(value: Union[str, OverlayField]) -> OverlayField:
    """
    Convert a field id (e.g. "maxSpeed") into an OverlayField

    Raises:
        ValueError: if the id is not part of the catalog
    """
    if isinstance(value, OverlayField):
        return value
    try:
        return OverlayField(str(value).strip())
    except ValueError:
        known = ", ".join(f.value for f in OVERLAY_FIELD_ORDER)
        raise ValueError(f"Unknown overlay field '{value}' (expected one of: {known})") from None


def sort_fields(fields: Iterable[Union[str, OverlayField]]) -> List[OverlayField]:
    """Drop duplicates and return the fields in canonical display order."""
    unique = {parse_field(f) for f in fields}
    return sorted(unique, key=_FIELD_RANK.__getitem__)
