#!/usr/bin/env python3
"""
Pillow drawing surface used by the overlay and route renderers

Everything the renderers paint goes through this class, so a test double with the
same methods can stand in for it. Translucent colors are alpha-blended onto the
underlying RGB image.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFilter

from .fonts import FontResolver, FontSpec, get_font_resolver

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]

_CSS_RGBA_RE = re.compile(
    r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([0-9]*\.?[0-9]+)\s*)?\)$"
)

_TEXT_ANCHORS = {"left": "la", "center": "ma", "right": "ra"}


def parse_color(color: str, opacity: float = 1.0) -> RGBA:
    """
    Parse a CSS-style color into an RGBA tuple

    Accepts anything Pillow understands ("#ff8800", "white", "hsl(...)") plus CSS
    "rgba(r, g, b, 0.5)" with a fractional alpha. The result alpha is multiplied
    by opacity.

    Raises:
        ValueError: if the color cannot be parsed
    """
    text = str(color).strip()
    match = _CSS_RGBA_RE.match(text.lower())
    if match:
        r, g, b = (min(255, int(v)) for v in match.group(1, 2, 3))
        alpha = float(match.group(4)) if match.group(4) is not None else 1.0
        a = int(round(max(0.0, min(1.0, alpha)) * 255))
    else:
        r, g, b, a = ImageColor.getcolor(text, "RGBA")
    opacity = max(0.0, min(1.0, opacity))
    return r, g, b, int(round(a * opacity))


@dataclass(frozen=True)
class Shadow:
    """A blurred drop shadow drawn underneath a shape."""

    color: str = "rgba(0, 0, 0, 0.5)"
    blur: float = 2.0
    offset_x: float = 0.0
    offset_y: float = 0.0


class PillowSurface:
    """Drawing surface over a Pillow RGB image"""

    def __init__(self, image: Image.Image, fonts: Optional[FontResolver] = None):
        if image.mode != "RGB":
            raise ValueError(f"PillowSurface needs an RGB image, got mode {image.mode}")
        self.image = image
        self.fonts = fonts or get_font_resolver()
        self._draw = ImageDraw.Draw(image, "RGBA")

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def measure_text(self, text: str, font: FontSpec) -> float:
        return self.fonts.measure(text, font)

    def fill_text(self, text: str, x: float, y: float, font: FontSpec, color: str,
                  align: str = "left", opacity: float = 1.0, shadow: Optional[Shadow] = None) -> None:
        """
        Draw a single line of text

        Args:
            text: Text to draw
            x: Horizontal anchor (left edge, center or right edge depending on align)
            y: Top of the text (ascender line)
            font: Font request
            color: CSS-style color
            align: "left", "center" or "right"
            opacity: Multiplier for the color alpha
            shadow: Optional blurred shadow drawn underneath
        """
        pil_font = self.fonts.get_font(font)
        anchor = _TEXT_ANCHORS.get(align, "la")
        if shadow is not None:
            left, top, right, bottom = self._draw.textbbox((x, y), text, font=pil_font, anchor=anchor)
            corners = [(left + shadow.offset_x, top + shadow.offset_y),
                       (right + shadow.offset_x, bottom + shadow.offset_y)]
            origin = (x + shadow.offset_x - corners[0][0], y + shadow.offset_y - corners[0][1])
            self._paint_shadow(
                shadow, shadow.blur * 3, corners,
                lambda d, pts: d.text((pts[0][0] + origin[0], pts[0][1] + origin[1]), text,
                                      font=pil_font, fill=255, anchor=anchor),
            )
        self._draw.text((x, y), text, font=pil_font, fill=parse_color(color, opacity), anchor=anchor)

    def draw_image(self, image: Image.Image, x: int, y: int, width: int, height: int,
                   shadow: Optional[Shadow] = None) -> None:
        """Scale an image (alpha respected) into the given rectangle."""
        if width <= 0 or height <= 0:
            return
        rgba = image.convert("RGBA").resize((int(width), int(height)), Image.Resampling.LANCZOS)
        if shadow is not None:
            alpha = rgba.getchannel("A")
            corners = [(x + shadow.offset_x, y + shadow.offset_y),
                       (x + shadow.offset_x + width, y + shadow.offset_y + height)]
            self._paint_shadow(shadow, shadow.blur * 3, corners,
                               lambda d, pts: d.bitmap((int(pts[0][0]), int(pts[0][1])), alpha, fill=255))
        self.image.paste(rgba, (int(x), int(y)), rgba)

    def average_luminance(self, x: int, y: int, width: int, height: int) -> float:
        """Mean perceptual luminance (0..1) of a region, clipped to the image."""
        left = max(0, int(x))
        top = max(0, int(y))
        right = min(self.width, left + max(1, int(width)))
        bottom = min(self.height, top + max(1, int(height)))
        if right <= left or bottom <= top:
            return 0.0
        pixels = np.asarray(self.image.crop((left, top, right, bottom)), dtype=float)
        luma = pixels[..., 0] * 0.2126 + pixels[..., 1] * 0.7152 + pixels[..., 2] * 0.0722
        return float(luma.mean() / 255.0)

    def fill_rounded_rect(self, x: float, y: float, width: float, height: float,
                          radius: float, color: str, opacity: float = 1.0) -> None:
        if width <= 0 or height <= 0:
            return
        self._draw.rounded_rectangle(
            [x, y, x + width - 1, y + height - 1],
            radius=max(0, int(radius)),
            fill=parse_color(color, opacity),
        )

    def stroke_polyline(self, points: Sequence[Point], color: str, width: float,
                        shadow: Optional[Shadow] = None) -> None:
        """Stroke an open path with round joins and caps, optionally over a blurred shadow."""
        if len(points) < 2:
            return
        line_width = max(1, int(round(width)))
        if shadow is not None:
            shifted = [(px + shadow.offset_x, py + shadow.offset_y) for px, py in points]
            self._paint_shadow(shadow, line_width / 2 + shadow.blur * 3, shifted,
                               lambda d, pts: _line(d, pts, 255, line_width))
        _line(self._draw, list(points), parse_color(color), line_width)

    def fill_circle(self, cx: float, cy: float, radius: float, color: str,
                    outline: Optional[str] = None, outline_width: float = 0,
                    shadow: Optional[Shadow] = None) -> None:
        if radius <= 0:
            return
        if shadow is not None:
            center = [(cx + shadow.offset_x, cy + shadow.offset_y)]
            reach = radius + outline_width + shadow.blur * 3
            self._paint_shadow(shadow, reach, center,
                               lambda d, pts: d.ellipse(_circle_box(pts[0], radius + outline_width), fill=255))
        self._draw.ellipse(
            _circle_box((cx, cy), radius),
            fill=parse_color(color),
            outline=parse_color(outline) if outline else None,
            width=max(0, int(round(outline_width))),
        )

    def _paint_shadow(self, shadow: Shadow, reach: float, points: Sequence[Point], paint) -> None:
        """Draw a shape into a blurred alpha mask around the points and composite the shadow color."""
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        left = max(0, int(min(xs) - reach))
        top = max(0, int(min(ys) - reach))
        right = min(self.width, int(max(xs) + reach) + 1)
        bottom = min(self.height, int(max(ys) + reach) + 1)
        if right <= left or bottom <= top:
            return

        mask = Image.new("L", (right - left, bottom - top), 0)
        local = [(px - left, py - top) for px, py in points]
        paint(ImageDraw.Draw(mask), local)
        if shadow.blur > 0:
            mask = mask.filter(ImageFilter.GaussianBlur(shadow.blur))

        r, g, b, a = parse_color(shadow.color)
        if a < 255:
            mask = mask.point(lambda v: v * a // 255)
        self.image.paste((r, g, b), (left, top, right, bottom), mask)


def _circle_box(center: Point, radius: float):
    cx, cy = center
    return [cx - radius, cy - radius, cx + radius, cy + radius]


def _line(draw: ImageDraw.ImageDraw, points, fill, width: int) -> None:
    draw.line(points, fill=fill, width=width, joint="curve")
    if width > 2:
        cap = width / 2
        for end in (points[0], points[-1]):
            draw.ellipse(_circle_box(end, cap - 0.5), fill=fill)
