import numpy as np
import pytest
from PIL import Image

from velociview.lib.fonts import FontResolver
from velociview.lib.options import OverlayOptions
from velociview.lib.overlay import RenderResult, compute_layout, render_overlay
from velociview.lib.surface import PillowSurface

from conftest import RecordingSurface

ALL_FIELDS = ["distance", "movingTime", "avgSpeed", "maxSpeed", "avgPace", "maxPace", "ascent",
              "descent", "maxElevation", "minElevation", "avgElevation", "routeMap"]


class TestRenderOverlay:
    def test_scenario(self, surface, scenario_values):
        options = OverlayOptions(selected_fields=["movingTime", "distance"], position=(0, 0))
        result = render_overlay(surface, 1000, 800, scenario_values, options)
        assert result == RenderResult(width=160, height=154, x=0, y=0)
        assert surface.texts() == ["Distance", "10.00 km", "Duration", "45:00"]

    def test_background_rect_matches_box(self, surface, scenario_values):
        options = OverlayOptions(selected_fields=["distance"], position=(1, 1),
                                 secondary_color="#112233", background_opacity=0.4)
        result = render_overlay(surface, 1000, 800, scenario_values, options)
        (_, x, y, w, h, radius, color, opacity), = surface.of_kind("rect")
        assert (x, y, w, h) == (result.x, result.y, result.width, result.height)
        assert (x + w, y + h) == (1000, 800)
        assert (radius, color, opacity) == (10, "#112233", 0.4)

    def test_transparent_background(self, surface, scenario_values):
        options = OverlayOptions(selected_fields=["distance"], background_mode="transparent")
        render_overlay(surface, 1000, 800, scenario_values, options)
        assert surface.of_kind("rect") == []

    def test_label_and_value_styles(self, surface, scenario_values):
        options = OverlayOptions(selected_fields=["distance"], primary_color="#ff0000", text_align="right")
        render_overlay(surface, 1000, 800, scenario_values, options)
        label, value = surface.of_kind("text")
        assert label[4].weight == 500 and label[7] == 0.85
        assert value[4].weight == 700 and value[7] == 1.0
        assert label[5] == value[5] == "#ff0000"
        assert label[6] == value[6] == "right"
        assert label[2] == value[2]

    def test_unavailable_fields_never_drawn(self, surface, scenario_values):
        options = OverlayOptions(selected_fields=["avgPace", "maxElevation", "routeMap"])
        result = render_overlay(surface, 1000, 800, scenario_values, options)
        assert surface.texts() == []
        assert surface.of_kind("polyline") == []
        assert (result.width, result.height) == (32, 32)

    def test_mini_map_in_grid_cell(self, surface, full_values):
        options = OverlayOptions(selected_fields=["distance", "routeMap"], layout_mode="auto", position=(0, 0))
        result = render_overlay(surface, 1000, 800, full_values, options)
        assert surface.texts() == ["Distance", "42.15 km", "Route Map"]
        (_, path, color, width, _), = surface.of_kind("polyline")
        assert color == "#ffffff"
        assert all(result.x <= x < result.x + result.width for x, _ in path)
        assert all(result.y <= y < result.y + result.height for _, y in path)

    @pytest.mark.parametrize("position", ["top", "left", "right", "bottom"])
    def test_map_region_without_label(self, surface, full_values, position):
        options = OverlayOptions(selected_fields=["distance", "routeMap"], map_position=position)
        result = render_overlay(surface, 1000, 800, full_values, options)
        assert "Route Map" not in surface.texts()
        path = surface.of_kind("polyline")[0][1]
        assert all(result.x <= x < result.x + result.width for x, _ in path)
        assert all(result.y <= y < result.y + result.height for _, y in path)

    def test_scale_grows_box(self, scenario_values):
        small = render_overlay(RecordingSurface(), 1000, 800, scenario_values, OverlayOptions(scale=1.0))
        large = render_overlay(RecordingSurface(), 1000, 800, scenario_values, OverlayOptions(scale=2.0))
        assert large.width > small.width
        assert large.height > small.height

    def test_compute_layout_matches_render(self, surface, full_values):
        options = OverlayOptions(selected_fields=ALL_FIELDS, layout_mode="fixed", grid_columns=3)
        plan = compute_layout(surface, full_values, options)
        result = render_overlay(surface, 1000, 800, full_values, options)
        assert (plan.box_width, plan.box_height) == (result.width, result.height)


def test_render_result_intersects():
    box = RenderResult(width=100, height=50, x=10, y=10)
    assert box.intersects(100, 50, 20, 20)
    assert not box.intersects(110, 10, 20, 20)
    assert box.to_dict() == {"x": 10, "y": 10, "width": 100, "height": 50}


class TestPixelContainment:
    """Render with Pillow onto a black image and check nothing lands outside the box"""

    @pytest.fixture
    def fonts(self):
        return FontResolver(font_dirs=[], include_system_fonts=False)

    @pytest.mark.parametrize("options", [
        dict(layout_mode="list", text_align="left"),
        dict(layout_mode="auto", text_align="center"),
        dict(layout_mode="fixed", grid_columns=3, text_align="right"),
        dict(layout_mode="auto", map_position="bottom", text_align="center"),
        dict(layout_mode="list", map_position="left", scale=0.6),
    ])
    def test_everything_painted_inside_box(self, fonts, full_values, options):
        image = Image.new("RGB", (900, 1200), (0, 0, 0))
        surface = PillowSurface(image, fonts)
        overlay = OverlayOptions(selected_fields=ALL_FIELDS, background_mode="transparent",
                                 position=(0.3, 0.6), **options)
        result = render_overlay(surface, image.width, image.height, full_values, overlay)

        pixels = np.asarray(image).sum(axis=2)
        ys, xs = np.nonzero(pixels)
        assert xs.size > 0
        assert xs.min() >= result.x and xs.max() < result.x + result.width
        assert ys.min() >= result.y and ys.max() < result.y + result.height

    def test_background_fills_box_exactly(self, fonts, scenario_values):
        image = Image.new("RGB", (400, 300), (0, 0, 0))
        surface = PillowSurface(image, fonts)
        overlay = OverlayOptions(selected_fields=["distance"], secondary_color="#ffffff",
                                 background_opacity=1.0, position=(0.5, 0.5))
        result = render_overlay(surface, 400, 300, scenario_values, overlay)
        pixels = np.asarray(image).sum(axis=2)
        ys, xs = np.nonzero(pixels)
        assert (xs.min(), xs.max() + 1) == (result.x, result.x + result.width)
        assert (ys.min(), ys.max() + 1) == (result.y, result.y + result.height)
