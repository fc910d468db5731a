"""Position presets, download names and image export."""

from __future__ import annotations

import io
import logging
import os
import re
from typing import Dict, Optional, Tuple

from PIL import Image

from .stats import StatValues

logger = logging.getLogger(__name__)

PRESET_MARGIN = 0.05

POSITION_PRESETS = (
    "top",
    "left",
    "center",
    "right",
    "bottom",
    "top left",
    "top right",
    "bottom left",
    "bottom right",
)

EXPORT_FORMATS: Dict[str, Tuple[str, str]] = {
    "png": ("image/png", "png"),
    "jpeg": ("image/jpeg", "jpg"),
    "webp": ("image/webp", "webp"),
}

_PIL_FORMATS = {"png": "PNG", "jpeg": "JPEG", "webp": "WEBP"}

ACTIVITY_EXTENSIONS = (".gpx", ".tcx")
ACTIVITY_MIME_TYPES = (
    "application/gpx+xml",
    "application/vnd.garmin.tcx+xml",
    "application/xml",
    "text/xml",
)
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff", ".heic")


def preset_to_position(preset: str, margin: float = PRESET_MARGIN) -> Tuple[float, float]:
    """
    Convert a named preset ("bottom left", "center", ...) to a normalized position

    Raises:
        ValueError: for an unknown preset
    """
    name = " ".join(str(preset).strip().lower().replace("-", " ").split())
    positions = {
        "center": (0.5, 0.5),
        "top": (0.5, margin),
        "bottom": (0.5, 1 - margin),
        "left": (margin, 0.5),
        "right": (1 - margin, 0.5),
        "top left": (margin, margin),
        "top right": (1 - margin, margin),
        "bottom left": (margin, 1 - margin),
        "bottom right": (1 - margin, 1 - margin),
    }
    if name not in positions:
        raise ValueError(f"Unknown position preset '{preset}' (expected one of: {', '.join(POSITION_PRESETS)})")
    return positions[name]


def parse_position(value: str) -> Tuple[float, float]:
    """Parse either a preset name or an "x,y" pair of fractions."""
    if "," in value:
        parts = value.split(",")
        if len(parts) != 2:
            raise ValueError(f"Invalid position '{value}' (expected x,y)")
        try:
            return float(parts[0]), float(parts[1])
        except ValueError:
            raise ValueError(f"Invalid position '{value}' (expected x,y)") from None
    return preset_to_position(value)


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def build_download_filename(base_name: str, values: StatValues, ext: str) -> str:
    """
    Name for the exported image, e.g. "morning-ride_42.15km_1-32-05.png"

    The track name wins over base_name when present.
    """
    base = base_name or "overlay"
    if values.track_name and values.track_name.strip():
        base = _slugify(values.track_name)

    dist_match = re.search(r"([0-9]+(?:\.[0-9]+)?)", values.distance or "")
    dist_part = f"{dist_match.group(1)}km" if dist_match else None
    time_part = re.sub(r"[^0-9]+", "-", values.moving_time or "").strip("-")
    parts = [p for p in (base, dist_part, time_part) if p]
    return f"{'_'.join(parts)}.{ext}"


def get_mime_and_ext(fmt: Optional[str]) -> Tuple[str, str]:
    """(MIME type, file extension) for an export format; unknown formats export as PNG."""
    return EXPORT_FORMATS.get((fmt or "png").lower(), EXPORT_FORMATS["png"])


def normalize_format(fmt: Optional[str]) -> str:
    name = (fmt or "png").strip().lower()
    if name == "jpg":
        name = "jpeg"
    return name if name in EXPORT_FORMATS else "png"


def format_from_filename(filename: str) -> str:
    return normalize_format(os.path.splitext(filename)[1].lstrip("."))


def is_tcx_file(filename: str, mime_type: str = "") -> bool:
    return filename.lower().endswith(".tcx") or mime_type == "application/vnd.garmin.tcx+xml"


def is_gpx_file(filename: str, mime_type: str = "") -> bool:
    return filename.lower().endswith(".gpx") or mime_type == "application/gpx+xml"


def is_activity_file(filename: str, mime_type: str = "") -> bool:
    has_valid_extension = filename.lower().endswith(ACTIVITY_EXTENSIONS)
    return has_valid_extension or (mime_type or "") in ACTIVITY_MIME_TYPES


def is_image_file(filename: str, mime_type: str = "") -> bool:
    if mime_type:
        return mime_type.startswith("image/")
    return filename.lower().endswith(IMAGE_EXTENSIONS)


def encode_image(image: Image.Image, fmt: str = "png", quality: int = 92) -> bytes:
    """Encode an image into png, jpeg or webp bytes."""
    name = normalize_format(fmt)
    buffer = io.BytesIO()
    params = {"quality": quality} if name in ("jpeg", "webp") else {}
    image.convert("RGB").save(buffer, _PIL_FORMATS[name], **params)
    return buffer.getvalue()


def save_image(image: Image.Image, path, fmt: Optional[str] = None, quality: int = 92) -> str:
    """
    Write an image to disk

    Args:
        image: Image to save
        path: Output path
        fmt: "png", "jpeg" or "webp" (default: from the path extension)
        quality: JPEG/WebP quality

    Returns:
        The path written
    """
    path = str(path)
    name = normalize_format(fmt) if fmt else format_from_filename(path)
    with open(path, "wb") as fh:
        fh.write(encode_image(image, name, quality))
    logger.info(f"Saved {name.upper()} image to {path}")
    return path
