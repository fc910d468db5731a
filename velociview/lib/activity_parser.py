#!/usr/bin/env python3
"""
Decode GPX and TCX activity files into raw numeric statistics

GPX files are read with gpxpy; TCX files with ElementTree using namespace
wildcards, so any TrainingCenterDatabase schema version is accepted.
"""

import logging
import os
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import List, Optional, Union

import gpxpy
import gpxpy.gpx

from . import metrics
from .stats import RawStats, RoutePoint

logger = logging.getLogger(__name__)


class ActivityDecodeError(ValueError):
    """Base class for activity files that cannot be turned into stats."""

    kind = "decode_error"


class MalformedActivityError(ActivityDecodeError):
    """The document is not well-formed XML or not a GPX/TCX document."""

    kind = "malformed"


class NoTrackDataError(ActivityDecodeError):
    """The document contains no track (GPX) or lap (TCX)."""

    kind = "no_track"


class NoPositionDataError(ActivityDecodeError):
    """The track carries neither a distance nor any position."""

    kind = "no_position"


ACTIVITY_EXTENSIONS = ('.gpx', '.tcx')


def _to_text(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        return data.decode('utf-8-sig', errors='replace')
    return data


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _detect_format(root: ET.Element, filename: Optional[str]) -> str:
    name = _local_name(root.tag)
    if name == 'gpx':
        return 'gpx'
    if name == 'TrainingCenterDatabase':
        return 'tcx'
    ext = os.path.splitext(filename or '')[1].lower()
    expected = f" for a {ext[1:].upper()} file" if ext in ACTIVITY_EXTENSIONS else ""
    raise MalformedActivityError(f"Unrecognized root element <{name}>{expected}")


def parse_activity(data: Union[bytes, str], filename: Optional[str] = None) -> RawStats:
    """
    Decode an activity file, detecting GPX or TCX from its root element

    Args:
        data: Raw file content
        filename: Uploaded file name, used only to improve error messages

    Returns:
        RawStats for the first track / all laps of the activity

    Raises:
        MalformedActivityError: unparsable XML or unknown document type
        NoTrackDataError: no track or lap present
        NoPositionDataError: the track has no distance and no positions
    """
    text = _to_text(data)
    try:
        root = ET.fromstring(text.encode('utf-8'))
    except ET.ParseError as e:
        raise MalformedActivityError(f"Activity file is not valid XML: {e}") from e

    fmt = _detect_format(root, filename)
    logger.debug(f"Decoding {fmt.upper()} activity {filename or '<memory>'}")
    if fmt == 'gpx':
        return parse_gpx(text)
    return _parse_tcx_root(root)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def parse_gpx(text: Union[bytes, str]) -> RawStats:
    """Decode the first track of a GPX document."""
    try:
        gpx = gpxpy.parse(_to_text(text))
    except gpxpy.gpx.GPXException as e:
        raise MalformedActivityError(f"GPX parsing failed: {e}") from e

    if not gpx.tracks:
        raise NoTrackDataError(
            "GPX parsing failed: No tracks found in file. "
            "The GPX file may be empty or contain only waypoints."
        )
    track = gpx.tracks[0]
    points = [p for segment in track.segments for p in segment.points]

    distance = track.length_2d() or 0.0
    if not distance and not points:
        raise NoPositionDataError("GPX parsing failed: Track contains no distance or position data")

    moving_data = track.get_moving_data()
    moving_time = float(moving_data.moving_time) if moving_data else 0.0
    avg_speed = distance / moving_time if moving_time > 0 else 0.0

    max_speed = metrics.max_speed_mps(
        [p.latitude for p in points],
        [p.longitude for p in points],
        [p.time for p in points],
    )

    uphill_downhill = track.get_uphill_downhill()
    elevations = [p.elevation for p in points if p.elevation is not None]
    if elevations:
        extremes = track.get_elevation_extremes()
        max_elevation, min_elevation = extremes.maximum, extremes.minimum
    else:
        max_elevation = min_elevation = None

    route_points = [
        RoutePoint(p.latitude, p.longitude)
        for p in points
        if p.latitude is not None and p.longitude is not None
    ]

    logger.debug(f"GPX track '{track.name}': {len(points)} points, {distance:.0f} m, {moving_time:.0f} s moving")
    return RawStats(
        distance_m=distance,
        moving_time_s=moving_time,
        avg_speed_mps=avg_speed,
        max_speed_mps=max_speed,
        ascent_m=uphill_downhill.uphill or 0.0,
        descent_m=uphill_downhill.downhill or 0.0,
        max_elevation_m=max_elevation,
        min_elevation_m=min_elevation,
        avg_elevation_m=_mean(elevations),
        route_points=route_points,
        track_name=track.name or None,
        track_description=track.description or track.comment or None,
    )


def _float(element: Optional[ET.Element]) -> Optional[float]:
    if element is None or element.text is None:
        return None
    try:
        return float(element.text.strip())
    except ValueError:
        return None


def _timestamp(element: Optional[ET.Element]) -> Optional[datetime]:
    if element is None or not element.text:
        return None
    value = element.text.strip()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_tcx(text: Union[bytes, str]) -> RawStats:
    """Decode all laps of a TCX document."""
    try:
        root = ET.fromstring(_to_text(text).encode('utf-8'))
    except ET.ParseError as e:
        raise MalformedActivityError(f"Activity file is not valid XML: {e}") from e
    if _local_name(root.tag) != 'TrainingCenterDatabase':
        raise MalformedActivityError(f"Unrecognized root element <{_local_name(root.tag)}>")
    return _parse_tcx_root(root)


def _parse_tcx_root(root: ET.Element) -> RawStats:
    laps = root.findall('.//{*}Activity/{*}Lap')
    if not laps:
        raise NoTrackDataError("TCX parsing failed: No laps found in file.")

    lap_times = [_float(lap.find('{*}TotalTimeSeconds')) for lap in laps]
    lap_distances = [_float(lap.find('{*}DistanceMeters')) for lap in laps]
    lap_max_speeds = [_float(lap.find('{*}MaximumSpeed')) for lap in laps]

    lats: List[float] = []
    lons: List[float] = []
    times: List[Optional[datetime]] = []
    altitudes: List[float] = []
    cumulative: List[float] = []
    for tp in root.iter():
        if _local_name(tp.tag) != 'Trackpoint':
            continue
        altitude = _float(tp.find('{*}AltitudeMeters'))
        if altitude is not None:
            altitudes.append(altitude)
        dist = _float(tp.find('{*}DistanceMeters'))
        if dist is not None:
            cumulative.append(dist)
        lat = _float(tp.find('{*}Position/{*}LatitudeDegrees'))
        lon = _float(tp.find('{*}Position/{*}LongitudeDegrees'))
        if lat is None or lon is None:
            continue
        lats.append(lat)
        lons.append(lon)
        times.append(_timestamp(tp.find('{*}Time')))

    known_distances = [d for d in lap_distances if d is not None]
    if known_distances:
        distance = sum(known_distances)
    elif cumulative:
        distance = cumulative[-1]
    else:
        distance = metrics.path_length(lats, lons)

    if not distance and not lats:
        raise NoPositionDataError("TCX parsing failed: Activity contains no distance or position data")

    known_times = [t for t in lap_times if t is not None]
    if known_times:
        moving_time = sum(known_times)
    else:
        stamps = [t for t in times if t is not None]
        moving_time = (stamps[-1] - stamps[0]).total_seconds() if len(stamps) > 1 else 0.0
    avg_speed = distance / moving_time if moving_time > 0 else 0.0

    known_max = [s for s in lap_max_speeds if s is not None]
    if known_max:
        max_speed = max(known_max)
    else:
        max_speed = metrics.max_speed_mps(lats, lons, times)

    ascent = descent = 0.0
    for prev, cur in zip(altitudes, altitudes[1:]):
        delta = cur - prev
        if delta > 0:
            ascent += delta
        else:
            descent -= delta

    name = None
    notes = root.find('.//{*}Activity/{*}Notes')
    if notes is not None and notes.text and notes.text.strip():
        name = notes.text.strip()
    else:
        activity = root.find('.//{*}Activity')
        if activity is not None:
            name = activity.get('Sport') or None

    logger.debug(f"TCX activity: {len(laps)} laps, {len(lats)} positions, {distance:.0f} m")
    return RawStats(
        distance_m=distance,
        moving_time_s=moving_time,
        avg_speed_mps=avg_speed,
        max_speed_mps=max_speed,
        ascent_m=ascent,
        descent_m=descent,
        max_elevation_m=max(altitudes) if altitudes else None,
        min_elevation_m=min(altitudes) if altitudes else None,
        avg_elevation_m=_mean(altitudes),
        route_points=[RoutePoint(lat, lon) for lat, lon in zip(lats, lons)],
        track_name=name,
    )
