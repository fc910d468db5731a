#!/usr/bin/env python3
"""
Render the stats box onto a drawing surface
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from .fonts import compensate
from .layout import (
    LABEL_OPACITY,
    LayoutPlan,
    MapItem,
    TextItem,
    LayoutMetrics,
    anchor_box,
    build_items,
    plan_layout,
    value_font_size,
)
from .options import BackgroundMode, OverlayOptions
from .route_map import project_route
from .stats import StatValues

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """The box that was painted, in image pixels: [x, x + width) x [y, y + height)."""

    width: int
    height: int
    x: int
    y: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    def intersects(self, x: float, y: float, width: float, height: float) -> bool:
        return x < self.x + self.width and x + width > self.x and y < self.y + self.height and y + height > self.y


def compute_layout(surface, values: StatValues, options: OverlayOptions) -> LayoutPlan:
    """Measure and plan the box without painting anything."""
    compensation = compensate(options.font_family, surface.measure_text)
    metrics = LayoutMetrics.from_value_size(value_font_size(options.scale, compensation))
    items = build_items(values, options.selected_fields)
    return plan_layout(items, options, metrics, surface.measure_text)


def render_overlay(surface, image_width: int, image_height: int,
                   values: StatValues, options: OverlayOptions) -> RenderResult:
    """
    Paint the stats box and return its exact bounding box

    Args:
        surface: Drawing surface (PillowSurface or anything with the same methods)
        image_width: Canvas width in pixels
        image_height: Canvas height in pixels
        values: Formatted stat strings and route points
        options: Overlay styling and layout

    Returns:
        RenderResult; every pixel painted lies inside it
    """
    plan = compute_layout(surface, values, options)
    x, y = anchor_box(image_width, image_height, plan.box_width, plan.box_height, options.position)
    metrics = plan.metrics

    if options.background_mode is BackgroundMode.DARK:
        surface.fill_rounded_rect(x, y, plan.box_width, plan.box_height, metrics.corner_radius,
                                  options.secondary_color, options.background_opacity)

    align = options.text_align.value
    label_font = metrics.label_font(options.font_family)
    value_font = metrics.value_font(options.font_family)
    for placed in plan.placements:
        item = placed.item
        anchor_x = x + placed.anchor_x
        surface.fill_text(item.label, anchor_x, y + placed.label_y, label_font,
                          options.primary_color, align=align, opacity=LABEL_OPACITY)
        if isinstance(item, TextItem):
            surface.fill_text(item.value, anchor_x, y + placed.value_y, value_font,
                              options.primary_color, align=align)
        elif isinstance(item, MapItem):
            _draw_map(surface, values, x, y, placed.map_rect, options.primary_color)

    if plan.map_region is not None:
        _draw_map(surface, values, x, y, plan.map_region, options.primary_color)

    logger.debug(f"Rendered overlay box {plan.box_width}x{plan.box_height} at ({x}, {y})")
    return RenderResult(plan.box_width, plan.box_height, x, y)


def _draw_map(surface, values: StatValues, box_x: int, box_y: int,
              rect: Tuple[float, float, float, float], color: str) -> None:
    mx, my, mw, mh = rect
    project_route(surface, values.route_points, box_x + mx, box_y + my, mw, mh, color)
