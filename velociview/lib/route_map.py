#!/usr/bin/env python3
"""
Route drawing: the mini-map inside the stats box and the full-frame route overlay

Both use a plain normalized lat/lon bounding-box projection (no map projection),
which is accurate enough for the extent of a single activity.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from .stats import RoutePoint
from .surface import Shadow

logger = logging.getLogger(__name__)

MINI_MAP_PADDING = 0.1
MINI_MAP_MIN_RANGE = 0.0001
FULL_ROUTE_PADDING = 0.1

START_MARKER_COLOR = "#00FF00"
END_MARKER_COLOR = "#FF0000"
MARKER_OUTLINE_COLOR = "#FFFFFF"


def valid_route_points(points: Iterable[RoutePoint]) -> List[RoutePoint]:
    """Drop points with non-finite or out-of-range coordinates."""
    valid = []
    for p in points or ():
        lat = getattr(p, "lat", None)
        lon = getattr(p, "lon", None)
        if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
            continue
        if not (math.isfinite(lat) and math.isfinite(lon)):
            continue
        if -90 <= lat <= 90 and -180 <= lon <= 180:
            valid.append(p)
    return valid


def _coords(points: List[RoutePoint]) -> Tuple[np.ndarray, np.ndarray]:
    lats = np.array([p.lat for p in points], dtype=float)
    lons = np.array([p.lon for p in points], dtype=float)
    return lats, lons


def project_route(surface, points: Iterable[RoutePoint], box_x: float, box_y: float,
                  box_width: float, box_height: float, color: str) -> None:
    """
    Stroke the route scaled into a pixel box (the mini-map)

    Both axes share the larger of the lat/lon ranges plus 10% padding per side,
    so the route keeps its shape and never touches the box edge. Fewer than two
    valid points draws nothing.
    """
    valid = valid_route_points(points)
    if len(valid) < 2:
        logger.debug(f"Mini-map skipped: {len(valid)} valid route points")
        return

    lats, lons = _coords(valid)
    min_lat, min_lon = lats.min(), lons.min()
    value_range = max(lats.max() - min_lat, lons.max() - min_lon, MINI_MAP_MIN_RANGE)
    padded = value_range * (1 + MINI_MAP_PADDING * 2)

    nx = (lons - min_lon + value_range * MINI_MAP_PADDING) / padded
    ny = (lats - min_lat + value_range * MINI_MAP_PADDING) / padded
    xs = box_x + nx * box_width
    ys = box_y + box_height - ny * box_height

    surface.stroke_polyline(list(zip(xs.tolist(), ys.tolist())), color, max(1.0, box_width * 0.015))


@dataclass
class RouteOptions:
    """Full-frame route styling. position is where the route's center lands, as a fraction of the image."""

    scale: float = 1.0
    position: Tuple[float, float] = (0.5, 0.5)
    color: str = "#FC4C02"
    line_width: float = 3.0


def render_route(surface, image_width: int, image_height: int,
                 points: Iterable[RoutePoint], options: RouteOptions) -> None:
    """
    Draw the whole route over the image with a drop shadow and start/end markers

    Args:
        surface: Drawing surface
        image_width: Canvas width in pixels
        image_height: Canvas height in pixels
        points: Route points in order
        options: Scale, center position, color and line width

    A route with zero latitude or longitude extent draws nothing.
    """
    valid = valid_route_points(points)
    if len(valid) < 2:
        return

    lats, lons = _coords(valid)
    min_lat, max_lat = lats.min(), lats.max()
    min_lon, max_lon = lons.min(), lons.max()
    lat_range = max_lat - min_lat
    lon_range = max_lon - min_lon
    if lat_range == 0 or lon_range == 0:
        logger.debug("Route has zero extent on one axis, not drawing")
        return

    padded_lat = lat_range * (1 + 2 * FULL_ROUTE_PADDING)
    padded_lon = lon_range * (1 + 2 * FULL_ROUTE_PADDING)
    scale = min(image_width / padded_lon, image_height / padded_lat) * options.scale

    route_width = lon_range * scale
    route_height = lat_range * scale
    pos_x, pos_y = options.position
    offset_x = pos_x * image_width - route_width / 2 - min_lon * scale
    offset_y = pos_y * image_height - route_height / 2 + max_lat * scale

    xs = lons * scale + offset_x
    ys = -lats * scale + offset_y
    path = list(zip(xs.tolist(), ys.tolist()))

    line_width = max(options.line_width, image_width * 0.001 * options.line_width)
    line_shadow = Shadow("rgba(0, 0, 0, 0.5)", blur=max(2.0, image_width * 0.002) / 2)
    surface.stroke_polyline(path, options.color, line_width, shadow=line_shadow)

    radius = max(5.0, image_width * 0.004)
    outline = max(2.0, image_width * 0.0015)
    marker_shadow = Shadow("rgba(0, 0, 0, 0.6)", blur=max(3.0, image_width * 0.003) / 2)
    for (x, y), fill in ((path[0], START_MARKER_COLOR), (path[-1], END_MARKER_COLOR)):
        surface.fill_circle(x, y, radius, fill, outline=MARKER_OUTLINE_COLOR,
                            outline_width=outline, shadow=marker_shadow)
    logger.debug(f"Drew full-frame route: {len(path)} points, scale {scale:.1f} px/deg")
