import pytest

from velociview.lib.fields import OVERLAY_FIELD_ORDER, OverlayField
from velociview.lib.layout import (
    LayoutMetrics,
    MapItem,
    TextItem,
    anchor_box,
    assign_cells,
    build_items,
    column_count,
    grid_geometry,
    plan_layout,
    round_half_up,
    value_font_size,
)
from velociview.lib.options import LayoutMode, OverlayOptions, TextAlign

from conftest import RecordingSurface

measure = RecordingSurface().measure_text
METRICS = LayoutMetrics.from_value_size(32)
TEXT_FIELDS = [f for f in OVERLAY_FIELD_ORDER if f is not OverlayField.ROUTE_MAP]


def plan(values, fields, **options):
    opts = OverlayOptions(selected_fields=fields, **options)
    items = build_items(values, opts.selected_fields)
    return items, plan_layout(items, opts, METRICS, measure)


def content_width(item):
    if isinstance(item, MapItem):
        return METRICS.map_size
    return max(measure(item.label, METRICS.label_font("x")), measure(item.value, METRICS.value_font("x")))


class TestMetrics:
    def test_derived_from_value_size(self):
        assert (METRICS.label_size, METRICS.padding, METRICS.line_gap, METRICS.label_gap,
                METRICS.corner_radius, METRICS.map_size) == (16, 16, 14, 6, 10, 128)
        assert METRICS.item_height == 54
        assert METRICS.map_item_height == 150

    def test_label_size_floor(self):
        assert LayoutMetrics.from_value_size(12).label_size == 10

    def test_value_font_size(self):
        assert value_font_size(1.0, 1.0) == 32
        assert value_font_size(1.5, 1.1) == 53
        assert value_font_size(0.1, 1.0) == 12

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(-2.5) == -2


class TestItems:
    def test_canonical_order(self, full_values):
        items = build_items(full_values, [OverlayField.MAX_SPEED, OverlayField.DISTANCE])
        assert [i.field for i in items] == [OverlayField.DISTANCE, OverlayField.MAX_SPEED]

    def test_missing_optional_fields_are_skipped(self, scenario_values):
        items = build_items(scenario_values, [OverlayField.AVG_PACE, OverlayField.DISTANCE,
                                              OverlayField.ROUTE_MAP])
        assert items == [TextItem(OverlayField.DISTANCE, "Distance", "10.00 km")]

    def test_map_item(self, full_values):
        items = build_items(full_values, [OverlayField.ROUTE_MAP, OverlayField.DISTANCE])
        assert isinstance(items[-1], MapItem)
        assert items[-1].label == "Route Map"


class TestListMode:
    def test_scenario(self, scenario_values):
        items, layout = plan(scenario_values, ["movingTime", "distance"])
        assert [i.value for i in items] == ["10.00 km", "45:00"]
        assert layout.box_height == 2 * METRICS.item_height + METRICS.line_gap + 2 * METRICS.padding
        assert layout.box_width == 128 + 2 * METRICS.padding

    def test_width_is_widest_item(self, full_values):
        for fields in (["distance"], ["distance", "movingTime"], TEXT_FIELDS):
            items, layout = plan(full_values, fields)
            widest = max(content_width(i) for i in items)
            assert layout.box_width == widest + 2 * METRICS.padding

    def test_gap_multipliers_do_not_apply(self, full_values):
        _, a = plan(full_values, TEXT_FIELDS)
        _, b = plan(full_values, TEXT_FIELDS, grid_gap_y=3.0)
        assert (a.box_width, a.box_height) == (b.box_width, b.box_height)

    def test_value_below_label(self, scenario_values):
        _, layout = plan(scenario_values, ["distance", "movingTime"])
        first, second = layout.placements
        assert (first.anchor_x, first.label_y) == (16, 16)
        assert first.value_y == 16 + 16 + 6
        assert second.label_y == 16 + 54 + 14

    def test_empty_selection(self, scenario_values):
        items, layout = plan(scenario_values, [])
        assert items == []
        assert (layout.box_width, layout.box_height) == (32, 32)


class TestGrid:
    def test_fixed_three_columns_seven_items_right_aligned(self, full_values):
        fields = TEXT_FIELDS[:7]
        _, layout = plan(full_values, fields, layout_mode="fixed", grid_columns=3, text_align="right")
        assert layout.grid.rows == 3
        assert layout.cell_assignments[2] == [None, None, 6]

    @pytest.mark.parametrize("align", [TextAlign.LEFT, TextAlign.CENTER])
    def test_partial_last_row_starts_at_column_zero(self, align):
        assert assign_cells(7, 3, align)[2] == [6, None, None]

    def test_fixed_columns_clamped_to_item_count(self):
        assert column_count(LayoutMode.FIXED, 5, 3) == 3
        assert column_count(LayoutMode.FIXED, 0, 3) == 1

    @pytest.mark.parametrize("count, expected", [(1, 1), (2, 2), (4, 2), (5, 3), (9, 3), (10, 4), (30, 4)])
    def test_auto_columns(self, count, expected):
        assert column_count(LayoutMode.AUTO, 2, count) == expected

    def test_box_size_from_columns_and_rows(self, full_values):
        items, layout = plan(full_values, TEXT_FIELDS[:4], layout_mode="fixed", grid_columns=2,
                             grid_gap_x=2.0, grid_gap_y=0.5)
        gap_x, gap_y = 28, 7
        widths = [content_width(i) for i in items]
        col0 = max(widths[0], widths[2])
        col1 = max(widths[1], widths[3])
        assert layout.box_width == col0 + col1 + gap_x + 32
        assert layout.box_height == 2 * 54 + gap_y + 32

    def test_single_column_stacks_like_list(self, full_values):
        fields = TEXT_FIELDS[:3]
        _, listed = plan(full_values, fields)
        _, fixed = plan(full_values, fields, layout_mode="fixed", grid_columns=1, grid_gap_y=3.0)
        assert fixed.box_height == listed.box_height == 3 * 54 + 2 * METRICS.line_gap + 32
        assert fixed.box_width == listed.box_width

    def test_map_row_is_taller(self, full_values):
        _, layout = plan(full_values, ["distance", "movingTime", "routeMap"], layout_mode="auto")
        assert layout.grid.row_heights == [54, 150]
        map_cell = layout.placements[-1]
        assert map_cell.map_rect == (16, 16 + 54 + 14 + 16 + 6, 128, 128)

    def test_center_row_offset(self):
        grid = grid_geometry([100, 60, 40], [54, 54, 54], 2, 10, 10, TextAlign.CENTER)
        # last row holds one 100 px column inside a 170 px grid
        assert grid.width == 170
        assert grid.row_start_offsets == [0, 35]

    def test_deterministic(self, full_values):
        _, a = plan(full_values, TEXT_FIELDS, layout_mode="auto")
        _, b = plan(full_values, TEXT_FIELDS, layout_mode="auto")
        assert (a.box_width, a.box_height) == (b.box_width, b.box_height)
        assert a.placements == b.placements


class TestMapRegion:
    def stats_grid(self, full_values):
        _, layout = plan(full_values, ["distance", "movingTime"])
        return layout.box_width - 32, layout.box_height - 32

    @pytest.mark.parametrize("position", ["top", "bottom"])
    def test_vertical_region(self, full_values, position):
        grid_w, grid_h = self.stats_grid(full_values)
        _, layout = plan(full_values, ["distance", "movingTime", "routeMap"], map_position=position)
        assert layout.map_region[2] == 320
        assert layout.box_width == max(320, grid_w) + 32
        assert layout.box_height == 320 + grid_h + 14 + 32
        assert all(isinstance(p.item, TextItem) for p in layout.placements)

    @pytest.mark.parametrize("position", ["left", "right"])
    def test_side_region(self, full_values, position):
        grid_w, grid_h = self.stats_grid(full_values)
        _, layout = plan(full_values, ["distance", "movingTime", "routeMap"], map_position=position)
        assert layout.map_region[2] == 256
        assert layout.box_width == 256 + grid_w + 14 + 32
        assert layout.box_height == max(256, grid_h) + 32

    def test_bottom_map_below_grid(self, full_values):
        _, grid_h = self.stats_grid(full_values)
        _, layout = plan(full_values, ["distance", "movingTime", "routeMap"], map_position="bottom")
        x, y, w, h = layout.map_region
        assert y == 16 + grid_h + 14
        assert y + h == layout.box_height - 16

    def test_map_only(self, full_values):
        _, layout = plan(full_values, ["routeMap"], map_position="left")
        assert (layout.box_width, layout.box_height) == (256 + 32, 256 + 32)
        assert layout.placements == []


class TestAnchor:
    @pytest.mark.parametrize("box", [(10, 10), (300, 120), (1000, 800)])
    def test_corners(self, box):
        bw, bh = box
        assert anchor_box(1000, 800, bw, bh, (0, 0)) == (0, 0)
        assert anchor_box(1000, 800, bw, bh, (1, 1)) == (1000 - bw, 800 - bh)

    def test_center(self):
        x, y = anchor_box(1000, 800, 301, 120, (0.5, 0.5))
        assert abs(x + 301 / 2 - 500) <= 0.5
        assert y + 60 == 400
