"""High-level pipeline: photo + activity file in, annotated image out."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .activity_parser import parse_activity
from .fonts import FontResolver
from .options import OverlayOptions
from .overlay import RenderResult, render_overlay
from .route_map import RouteOptions, render_route
from .stats import RawStats, StatValues, UnitSystem, format_stats
from .surface import PillowSurface
from .watermark import WatermarkAssets, draw_watermark

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes]


@dataclass
class ComposeRequest:
    """Parameters describing one overlay composition."""

    photo: Source
    activity: Source
    activity_filename: Optional[str] = None
    units: UnitSystem = UnitSystem.METRIC
    overlay: OverlayOptions = field(default_factory=OverlayOptions)
    route: Optional[RouteOptions] = None  # None = no full-frame route
    watermark: bool = False
    watermark_assets: Optional[WatermarkAssets] = None


@dataclass
class ComposeResult:
    """The annotated image and what was drawn on it."""

    image: Image.Image
    box: RenderResult
    values: StatValues
    raw: RawStats
    watermark_rect: Optional[Tuple[int, int, int, int]] = None


def _read_bytes(source: Source) -> bytes:
    if isinstance(source, bytes):
        return source
    return Path(source).read_bytes()


def open_photo(source: Source) -> Image.Image:
    """
    Open a photo as an RGB image with its EXIF orientation applied

    Raises:
        ValueError: if the data is not a readable image
    """
    try:
        with Image.open(io.BytesIO(_read_bytes(source))) as img:
            img = ImageOps.exif_transpose(img)
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not read photo: {e}") from e


def load_activity(source: Source, filename: Optional[str] = None,
                  units: Union[str, UnitSystem] = UnitSystem.METRIC) -> Tuple[RawStats, StatValues]:
    """Decode an activity file and format its stats."""
    if filename is None and not isinstance(source, bytes):
        filename = Path(source).name
    raw = parse_activity(_read_bytes(source), filename)
    return raw, format_stats(raw, units)


def compose_overlay(request: ComposeRequest, fonts: Optional[FontResolver] = None) -> ComposeResult:
    """Render the route, stats box and watermark for the supplied request."""

    raw, values = load_activity(request.activity, request.activity_filename, request.units)
    image = open_photo(request.photo)
    surface = PillowSurface(image, fonts)
    logger.info(
        f"Composing overlay on {image.width}x{image.height} photo: "
        f"{len(request.overlay.selected_fields)} fields, {len(values.route_points)} route points"
    )

    if request.route is not None:
        render_route(surface, image.width, image.height, values.route_points, request.route)

    box = render_overlay(surface, image.width, image.height, values, request.overlay)

    watermark_rect = None
    if request.watermark:
        watermark_rect = draw_watermark(surface, request.watermark_assets,
                                        request.overlay.font_family, avoid=box)

    return ComposeResult(image=image, box=box, values=values, raw=raw, watermark_rect=watermark_rect)
