#!/usr/bin/env python3
"""
Unit conversions, display formatting, and distance/speed helpers for activity stats
"""

import math
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

EARTH_RADIUS_M = 6371000.0
METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084
MPS_TO_KMH = 3.6
MPS_TO_MPH = 2.236936

# Speeds above 150 km/h are treated as GPS noise
MAX_REALISTIC_SPEED_MPS = 41.67
# Point pairs further apart than this are pauses, not motion
MAX_SPEED_SAMPLE_GAP_S = 5.0
MAX_SPEED_SAMPLE_PAIRS = 1000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth

    Args:
        lat1, lon1: Coordinates of first point (in degrees)
        lat2, lon2: Coordinates of second point (in degrees)

    Returns:
        Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _haversine_pairs(lat1, lon1, lat2, lon2) -> np.ndarray:
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = phi2 - phi1
    dlambda = np.radians(lon2) - np.radians(lon1)
    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def haversine_array(lats, lons) -> np.ndarray:
    """Distances in meters between consecutive points of two coordinate arrays."""
    lat = np.asarray(lats, dtype=float)
    lon = np.asarray(lons, dtype=float)
    return _haversine_pairs(lat[:-1], lon[:-1], lat[1:], lon[1:])


def path_length(lats: Sequence[float], lons: Sequence[float]) -> float:
    """Total length in meters of a polyline given as latitude/longitude sequences."""
    if len(lats) < 2:
        return 0.0
    return float(haversine_array(lats, lons).sum())


def max_speed_mps(lats: Sequence[float], lons: Sequence[float],
                  times: Sequence[Optional[datetime]]) -> float:
    """
    Find the fastest realistic speed between consecutive track points

    Long tracks are sampled so that at most ~1000 point pairs are examined. Pairs
    without timestamps, pairs more than 5 seconds apart, and speeds above
    150 km/h are ignored.

    Returns:
        Maximum speed in meters per second (0.0 when nothing qualifies)
    """
    count = len(lats)
    if count < 2:
        return 0.0

    step = count // MAX_SPEED_SAMPLE_PAIRS if count > MAX_SPEED_SAMPLE_PAIRS else 1
    second = np.arange(step, count, step)
    first = second - 1

    stamps = np.array([t.timestamp() if t is not None else np.nan for t in times], dtype=float)
    lat = np.asarray(lats, dtype=float)
    lon = np.asarray(lons, dtype=float)

    dt = stamps[second] - stamps[first]
    dist = _haversine_pairs(lat[first], lon[first], lat[second], lon[second])

    valid = np.isfinite(dt) & (dt > 0) & (dt < MAX_SPEED_SAMPLE_GAP_S)
    if not valid.any():
        return 0.0
    speeds = dist[valid] / dt[valid]
    speeds = speeds[speeds < MAX_REALISTIC_SPEED_MPS]
    return float(speeds.max()) if speeds.size else 0.0


def format_duration(total_seconds: float) -> str:
    """Format seconds as H:MM:SS, or MM:SS under an hour (2700 -> "45:00")."""
    total = int(max(0, total_seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    seconds = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def speed_to_kmh(meters_per_second: float) -> float:
    return meters_per_second * MPS_TO_KMH


def speed_to_mph(meters_per_second: float) -> float:
    return meters_per_second * MPS_TO_MPH


def pace_min_per_km(meters_per_second: float) -> float:
    if meters_per_second <= 0:
        return 0.0
    return (1000 / meters_per_second) / 60


def pace_min_per_mile(meters_per_second: float) -> float:
    if meters_per_second <= 0:
        return 0.0
    return (METERS_PER_MILE / meters_per_second) / 60


def _format_pace(minutes_per_unit: float, unit: str) -> str:
    if minutes_per_unit <= 0:
        return f"0:00 /{unit}"
    # Round on whole seconds so 4:59.7 becomes 5:00, not 4:60
    total_seconds = int(math.floor(minutes_per_unit * 60 + 0.5))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d} /{unit}"


def format_pace(minutes_per_km: float) -> str:
    """Format a pace in minutes per kilometer (5.5 -> "5:30 /km")."""
    return _format_pace(minutes_per_km, "km")


def format_pace_imperial(minutes_per_mile: float) -> str:
    """Format a pace in minutes per mile (8.25 -> "8:15 /mi")."""
    return _format_pace(minutes_per_mile, "mi")


def format_distance(meters: float, units: str = "metric") -> str:
    if units == "imperial":
        return f"{meters / METERS_PER_MILE:.2f} mi"
    return f"{meters / 1000:.2f} km"


def format_speed(meters_per_second: float, units: str = "metric") -> str:
    if units == "imperial":
        return f"{speed_to_mph(meters_per_second):.1f} mph"
    return f"{speed_to_kmh(meters_per_second):.1f} km/h"


def format_elevation(meters: float, units: str = "metric") -> str:
    if units == "imperial":
        return f"{meters * FEET_PER_METER:.0f} ft"
    return f"{meters:.0f} m"
