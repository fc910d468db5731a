#!/usr/bin/env python3
"""
Corner watermark that stays clear of the stats box
"""

import logging
import math
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .fonts import FontSpec, split_families
from .layout import round_half_up
from .surface import Shadow

logger = logging.getLogger(__name__)

WATERMARK_TEXT = "VelociView"
DARK_LOGO_LUMINANCE = 0.6

Rect = Tuple[int, int, int, int]


class WatermarkAssets:
    """
    Light and dark logo images, loaded once on first use

    A path that is None, missing or unreadable leaves that variant unset; with
    neither variant available the watermark falls back to text.
    """

    def __init__(self, light_path=None, dark_path=None):
        self.light_path = Path(light_path) if light_path else None
        self.dark_path = Path(dark_path) if dark_path else None
        self._light: Optional[Image.Image] = None
        self._dark: Optional[Image.Image] = None
        self._loaded = False
        self._lock = threading.Lock()

    @staticmethod
    def _load(path: Optional[Path]) -> Optional[Image.Image]:
        if path is None:
            return None
        try:
            with Image.open(path) as img:
                img.load()
                return img.convert("RGBA")
        except (OSError, UnidentifiedImageError) as e:
            logger.warning(f"Could not load watermark image {path}: {e}")
            return None

    def ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._light = self._load(self.light_path)
            self._dark = self._load(self.dark_path)
            self._loaded = True

    @property
    def light(self) -> Optional[Image.Image]:
        self.ensure_loaded()
        return self._light

    @property
    def dark(self) -> Optional[Image.Image]:
        self.ensure_loaded()
        return self._dark

    @property
    def has_logo(self) -> bool:
        return self.light is not None or self.dark is not None


def _overlap_area(rect: Rect, avoid) -> float:
    x, y, w, h = rect
    ix = max(0, min(x + w, avoid.x + avoid.width) - max(x, avoid.x))
    iy = max(0, min(y + h, avoid.y + avoid.height) - max(y, avoid.y))
    return ix * iy


def _corners(image_width: int, image_height: int, width: int, height: int, margin: int) -> List[Rect]:
    """Candidate rectangles: bottom-right, bottom-left, top-left, top-right."""
    right = image_width - margin - width
    bottom = image_height - margin - height
    return [
        (right, bottom, width, height),
        (margin, bottom, width, height),
        (margin, margin, width, height),
        (right, margin, width, height),
    ]


def choose_corner(candidates: List[Rect], avoid=None, least_overlap: bool = True) -> Rect:
    """
    Pick the first candidate that does not intersect the avoided box

    When every candidate intersects, the one with the smallest overlap wins
    (or simply the first one when least_overlap is False).
    """
    if avoid is None:
        return candidates[0]
    for rect in candidates:
        if _overlap_area(rect, avoid) == 0:
            return rect
    if not least_overlap:
        return candidates[0]
    return min(candidates, key=lambda rect: _overlap_area(rect, avoid))


def draw_watermark(surface, assets: Optional[WatermarkAssets], ui_font_family: str, avoid=None) -> Rect:
    """
    Draw the logo (or a text mark) in a corner of the image

    Args:
        surface: PillowSurface to draw on
        assets: Logo images, or None for the text watermark
        ui_font_family: Font family list for the text watermark
        avoid: RenderResult of the stats box to stay clear of

    Returns:
        (x, y, width, height) of the watermark
    """
    image_width, image_height = surface.width, surface.height
    margin = max(8, round_half_up(image_width * 0.02))

    if assets is not None and assets.has_logo:
        light, dark = assets.light, assets.dark
        source = light if light is not None else dark
        aspect = source.width / max(1, source.height)
        target_h = max(14, min(42, round_half_up(image_width * 0.028)))
        target_w = max(18, round_half_up(target_h * aspect))
        rect = choose_corner(_corners(image_width, image_height, target_w, target_h, margin), avoid)
        x, y = rect[0], rect[1]

        use_dark = surface.average_luminance(x, y, target_w, target_h) >= DARK_LOGO_LUMINANCE
        if use_dark:
            logo = dark if dark is not None else light
        else:
            logo = source
        offset = round_half_up(target_h * 0.06)
        shadow = Shadow("rgba(0, 0, 0, 0.35)", blur=round_half_up(target_h * 0.18) / 2,
                        offset_x=offset, offset_y=offset)
        surface.draw_image(logo, x, y, target_w, target_h, shadow=shadow)
        logger.debug(f"Logo watermark ({'dark' if use_dark else 'light'}) at {rect}")
        return rect

    font_size = max(12, min(28, round_half_up(image_width * 0.016)))
    families = split_families(ui_font_family)
    font = FontSpec(families[0] if families else "Inter", 600, font_size)
    text_w = int(math.ceil(surface.measure_text(WATERMARK_TEXT, font)))
    rect = choose_corner(_corners(image_width, image_height, text_w, font_size, margin), avoid,
                         least_overlap=False)
    offset = round_half_up(font_size * 0.08)
    shadow = Shadow("rgba(0, 0, 0, 0.35)", blur=max(0, round_half_up(font_size * 0.25)) / 2,
                    offset_x=offset, offset_y=offset)
    surface.fill_text(WATERMARK_TEXT, rect[0], rect[1], font, "#ffffff", opacity=0.85, shadow=shadow)
    logger.debug(f"Text watermark at {rect}")
    return rect
