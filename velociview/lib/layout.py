#!/usr/bin/env python3
"""
Layout planning for the stats overlay box

Everything here is pure geometry on integer pixels. The planner turns the selected
items into a grid (a list is the one-column case), optionally reserves a separate
region for the route mini-map, and reports where every label, value and map goes
relative to the top-left corner of the box. The renderer only paints what the plan
says, so sizing and painting can never disagree.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .fields import OverlayField, get_field_label, sort_fields
from .fonts import FontSpec
from .options import LayoutMode, MapPosition, OverlayOptions, TextAlign
from .stats import StatValues

logger = logging.getLogger(__name__)

BASE_FONT_SIZE = 32
MIN_VALUE_FONT_SIZE = 12
MIN_LABEL_FONT_SIZE = 10
VALUE_FONT_WEIGHT = 700
LABEL_FONT_WEIGHT = 500
LABEL_OPACITY = 0.85
MAX_AUTO_COLUMNS = 4

# Mini-map region size as a multiple of the in-grid mini-map size
MAP_REGION_SCALE_VERTICAL = 2.5
MAP_REGION_SCALE_SIDE = 2.0

Rect = Tuple[float, float, float, float]
MeasureFn = Callable[[str, FontSpec], float]


@dataclass(frozen=True)
class TextItem:
    """A label/value pair."""

    field: OverlayField
    label: str
    value: str


@dataclass(frozen=True)
class MapItem:
    """The slot that shows the route mini-map instead of a value."""

    label: str = get_field_label(OverlayField.ROUTE_MAP)


OverlayItem = Union[TextItem, MapItem]


def round_half_up(value: float) -> int:
    """Round halves towards +inf (2.5 -> 3, -2.5 -> -2) instead of to the nearest even integer."""
    return int(math.floor(value + 0.5))


def build_items(values: StatValues, fields: Iterable[OverlayField]) -> List[OverlayItem]:
    """
    Build overlay items in canonical field order

    Fields whose value is unavailable are skipped, and the mini-map is only
    included when the activity has route points.
    """
    items: List[OverlayItem] = []
    for overlay_field in sort_fields(fields):
        if overlay_field is OverlayField.ROUTE_MAP:
            if values.route_points:
                items.append(MapItem())
            continue
        value = values.value_for(overlay_field)
        if value is None:
            continue
        items.append(TextItem(overlay_field, get_field_label(overlay_field), value))
    return items


@dataclass(frozen=True)
class LayoutMetrics:
    """Font sizes and spacings, all derived from the value font size."""

    value_size: int
    label_size: int
    padding: int
    line_gap: int
    label_gap: int
    corner_radius: int
    map_size: int

    @classmethod
    def from_value_size(cls, value_size: int) -> "LayoutMetrics":
        v = int(value_size)
        return cls(
            value_size=v,
            label_size=max(MIN_LABEL_FONT_SIZE, round_half_up(v * 0.5)),
            padding=round_half_up(v * 0.5),
            line_gap=round_half_up(v * 0.45),
            label_gap=round_half_up(v * 0.2),
            corner_radius=round_half_up(v * 0.3),
            map_size=v * 4,
        )

    @property
    def item_height(self) -> int:
        return self.label_size + self.label_gap + self.value_size

    @property
    def map_item_height(self) -> int:
        return self.label_size + self.label_gap + self.map_size

    def label_font(self, family: str) -> FontSpec:
        return FontSpec(family, LABEL_FONT_WEIGHT, self.label_size)

    def value_font(self, family: str) -> FontSpec:
        return FontSpec(family, VALUE_FONT_WEIGHT, self.value_size)


def value_font_size(scale: float, compensation: float) -> int:
    return max(MIN_VALUE_FONT_SIZE, round_half_up(BASE_FONT_SIZE * scale * compensation))


def column_count(mode: LayoutMode, requested: int, item_count: int) -> int:
    """Number of grid columns for a layout mode and item count."""
    if mode is LayoutMode.FIXED:
        return max(1, min(max(1, item_count), int(requested)))
    if mode is LayoutMode.AUTO:
        n = max(1, item_count)
        return max(1, min(MAX_AUTO_COLUMNS, math.ceil(math.sqrt(n))))
    return 1


def assign_cells(count: int, columns: int, align: TextAlign) -> List[List[Optional[int]]]:
    """
    Assign item indices to grid cells row by row

    A partial last row starts at column 0, except with right alignment where it is
    pushed into the rightmost columns.

    Returns:
        One list per row with an item index or None for every column
    """
    columns = max(1, columns)
    rows = max(1, math.ceil(count / columns))
    assignments = []
    for r in range(rows):
        row_base = r * columns
        in_row = min(columns, max(0, count - row_base))
        row: List[Optional[int]] = [None] * columns
        start = 0
        if r == rows - 1 and align is TextAlign.RIGHT and in_row < columns:
            start = columns - in_row
        for k in range(in_row):
            row[start + k] = row_base + k
        assignments.append(row)
    return assignments


@dataclass(frozen=True)
class GridGeometry:
    """Column and row sizes of a laid-out grid. Offsets are relative to the grid origin."""

    columns: int
    rows: int
    assignments: List[List[Optional[int]]]
    col_widths: List[int]
    col_offsets: List[int]
    row_heights: List[int]
    row_offsets: List[int]
    row_start_offsets: List[int]
    gap_x: int
    gap_y: int

    @property
    def width(self) -> int:
        return sum(self.col_widths) + (self.columns - 1) * self.gap_x

    @property
    def height(self) -> int:
        return sum(self.row_heights) + (self.rows - 1) * self.gap_y

    def cells(self):
        """Yield (item index, row, column) for every occupied cell."""
        for r, row in enumerate(self.assignments):
            for c, index in enumerate(row):
                if index is not None:
                    yield index, r, c


def grid_geometry(widths: Sequence[int], heights: Sequence[int], columns: int,
                  gap_x: int, gap_y: int, align: TextAlign, min_row_height: int = 0) -> GridGeometry:
    """
    Size a grid of items

    Args:
        widths: Content width of every item
        heights: Content height of every item
        columns: Column count (>= 1)
        gap_x: Horizontal gap between columns
        gap_y: Vertical gap between rows
        align: Text alignment, drives last-row placement and row centering
        min_row_height: Lower bound for every row height

    Returns:
        GridGeometry shared by the sizing and painting passes
    """
    columns = max(1, columns)
    assignments = assign_cells(len(widths), columns, align)
    rows = len(assignments)

    col_widths = [0] * columns
    row_heights = [min_row_height] * rows
    for r, row in enumerate(assignments):
        for c, index in enumerate(row):
            if index is None:
                continue
            col_widths[c] = max(col_widths[c], int(math.ceil(widths[index])))
            row_heights[r] = max(row_heights[r], int(heights[index]))

    col_offsets = [0] * columns
    for c in range(1, columns):
        col_offsets[c] = col_offsets[c - 1] + col_widths[c - 1] + gap_x
    row_offsets = [0] * rows
    for r in range(1, rows):
        row_offsets[r] = row_offsets[r - 1] + row_heights[r - 1] + gap_y

    total_width = sum(col_widths) + (columns - 1) * gap_x
    row_start_offsets = [0] * rows
    if align is TextAlign.CENTER:
        for r, row in enumerate(assignments):
            occupied = [c for c, index in enumerate(row) if index is not None]
            content = sum(col_widths[c] for c in occupied) + max(0, len(occupied) - 1) * gap_x
            row_start_offsets[r] = round_half_up(max(0, total_width - content) / 2)

    return GridGeometry(
        columns=columns,
        rows=rows,
        assignments=assignments,
        col_widths=col_widths,
        col_offsets=col_offsets,
        row_heights=row_heights,
        row_offsets=row_offsets,
        row_start_offsets=row_start_offsets,
        gap_x=gap_x,
        gap_y=gap_y,
    )


def _align_offset(available: int, used: int, align: TextAlign) -> int:
    if align is TextAlign.RIGHT:
        return available - used
    if align is TextAlign.CENTER:
        return round_half_up((available - used) / 2)
    return 0


@dataclass(frozen=True)
class PlacedItem:
    """
    Where one item is painted, relative to the box origin

    anchor_x is the text anchor for the configured alignment (left edge, center or
    right edge of the cell). map_rect is set for the mini-map item only.
    """

    item: OverlayItem
    anchor_x: int
    label_y: int
    value_y: int
    map_rect: Optional[Rect] = None


@dataclass(frozen=True)
class LayoutPlan:
    box_width: int
    box_height: int
    metrics: LayoutMetrics
    grid: GridGeometry
    placements: List[PlacedItem]
    map_region: Optional[Rect] = None

    @property
    def cell_assignments(self) -> List[List[Optional[int]]]:
        return self.grid.assignments


def _item_width(item: OverlayItem, metrics: LayoutMetrics, family: str, measure: MeasureFn) -> int:
    if isinstance(item, MapItem):
        return metrics.map_size
    label_width = measure(item.label, metrics.label_font(family))
    value_width = measure(item.value, metrics.value_font(family))
    return int(math.ceil(max(label_width, value_width, 0)))


def _place_grid(items: Sequence[OverlayItem], grid: GridGeometry, origin_x: int, origin_y: int,
                metrics: LayoutMetrics, align: TextAlign) -> List[PlacedItem]:
    placements = []
    for index, r, c in grid.cells():
        item = items[index]
        left = origin_x + grid.row_start_offsets[r] + grid.col_offsets[c]
        width = grid.col_widths[c]
        if align is TextAlign.CENTER:
            anchor = left + round_half_up(width / 2)
        elif align is TextAlign.RIGHT:
            anchor = left + width
        else:
            anchor = left
        label_y = origin_y + grid.row_offsets[r]
        value_y = label_y + metrics.label_size + metrics.label_gap
        map_rect = None
        if isinstance(item, MapItem):
            size = metrics.map_size
            if align is TextAlign.CENTER:
                map_x = anchor - size / 2
            elif align is TextAlign.RIGHT:
                map_x = anchor - size
            else:
                map_x = anchor
            map_rect = (map_x, value_y, size, size)
        placements.append(PlacedItem(item, anchor, label_y, value_y, map_rect))
    return placements


def plan_layout(items: Sequence[OverlayItem], options: OverlayOptions,
                metrics: LayoutMetrics, measure: MeasureFn) -> LayoutPlan:
    """
    Compute the box size and the position of every item

    Args:
        items: Items in canonical order (see build_items)
        options: Overlay options (layout mode, columns, gaps, alignment, map position)
        metrics: Sizes derived from the value font size
        measure: Text width function

    Returns:
        LayoutPlan with coordinates relative to the box's top-left corner
    """
    align = options.text_align
    has_map = any(isinstance(item, MapItem) for item in items)
    map_region_mode = has_map and options.map_position is not MapPosition.GRID
    grid_items = [item for item in items if isinstance(item, TextItem)] if map_region_mode else list(items)

    mode = options.layout_mode
    columns = column_count(mode, options.grid_columns, len(grid_items))
    if mode is LayoutMode.LIST or columns == 1:
        gap_x, gap_y = 0, metrics.line_gap
    else:
        gap_x = max(0, round_half_up(metrics.line_gap * options.grid_gap_x))
        gap_y = max(0, round_half_up(metrics.line_gap * options.grid_gap_y))

    widths = [_item_width(item, metrics, options.font_family, measure) for item in grid_items]
    heights = [metrics.map_item_height if isinstance(item, MapItem) else metrics.item_height
               for item in grid_items]
    grid = grid_geometry(widths, heights, columns, gap_x, gap_y, align)
    padding = metrics.padding
    grid_w = grid.width
    grid_h = grid.height if grid_items else 0

    if not map_region_mode:
        box_w = grid_w + 2 * padding
        box_h = grid_h + 2 * padding
        placements = _place_grid(grid_items, grid, padding, padding, metrics, align)
        logger.debug(f"Grid layout: {len(grid_items)} items, {grid.columns}x{grid.rows}, box {box_w}x{box_h}")
        return LayoutPlan(box_w, box_h, metrics, grid, placements)

    position = options.map_position
    scale = MAP_REGION_SCALE_VERTICAL if position in (MapPosition.TOP, MapPosition.BOTTOM) else MAP_REGION_SCALE_SIDE
    map_size = round_half_up(metrics.map_size * scale)
    gap = metrics.line_gap

    if not grid_items:
        box_w = box_h = map_size + 2 * padding
        map_region = (padding, padding, map_size, map_size)
        return LayoutPlan(box_w, box_h, metrics, grid, [], map_region)

    if position in (MapPosition.TOP, MapPosition.BOTTOM):
        content_w = max(map_size, grid_w)
        box_w = content_w + 2 * padding
        box_h = map_size + grid_h + gap + 2 * padding
        map_x = padding + _align_offset(content_w, map_size, align)
        grid_x = padding + _align_offset(content_w, grid_w, align)
        if position is MapPosition.TOP:
            map_y, grid_y = padding, padding + map_size + gap
        else:
            grid_y, map_y = padding, padding + grid_h + gap
    else:
        box_w = map_size + grid_w + gap + 2 * padding
        box_h = max(map_size, grid_h) + 2 * padding
        map_y = grid_y = padding
        if position is MapPosition.LEFT:
            map_x, grid_x = padding, padding + map_size + gap
        else:
            grid_x, map_x = padding, padding + grid_w + gap

    placements = _place_grid(grid_items, grid, grid_x, grid_y, metrics, align)
    logger.debug(
        f"Map region layout ({position.value}): {len(grid_items)} stats, "
        f"{grid.columns}x{grid.rows}, map {map_size}px, box {box_w}x{box_h}"
    )
    return LayoutPlan(box_w, box_h, metrics, grid, placements, (map_x, map_y, map_size, map_size))


def anchor_box(image_width: int, image_height: int, box_width: int, box_height: int,
               position: Tuple[float, float]) -> Tuple[int, int]:
    """Top-left corner of the box; position is a fraction of the slack space on each axis."""
    px, py = position
    return (
        round_half_up(px * (image_width - box_width)),
        round_half_up(py * (image_height - box_height)),
    )
