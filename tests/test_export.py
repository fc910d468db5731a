import pytest
from PIL import Image

from velociview.lib.export import (
    build_download_filename,
    encode_image,
    format_from_filename,
    get_mime_and_ext,
    is_activity_file,
    is_gpx_file,
    is_image_file,
    is_tcx_file,
    parse_position,
    preset_to_position,
    save_image,
)


class TestPositions:
    @pytest.mark.parametrize("preset, expected", [
        ("bottom left", (0.05, 0.95)),
        ("top-right", (0.95, 0.05)),
        ("CENTER", (0.5, 0.5)),
        ("top", (0.5, 0.05)),
    ])
    def test_presets(self, preset, expected):
        assert preset_to_position(preset) == pytest.approx(expected)

    def test_custom_margin(self):
        assert preset_to_position("bottom right", margin=0.1) == pytest.approx((0.9, 0.9))

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown position preset"):
            preset_to_position("middle earth")

    def test_fractions(self):
        assert parse_position("0.2,0.75") == (0.2, 0.75)
        with pytest.raises(ValueError):
            parse_position("0.2,x")


class TestDownloadName:
    def test_uses_track_name_and_stats(self, full_values):
        assert build_download_filename("overlay", full_values, "png") == "morning-ride_42.15km_1-32-05.png"

    def test_falls_back_to_base_name(self, scenario_values):
        assert build_download_filename("my photo", scenario_values, "jpg") == "my photo_10.00km_45-00.jpg"


class TestFormats:
    def test_mime_and_ext(self):
        assert get_mime_and_ext("jpeg") == ("image/jpeg", "jpg")
        assert get_mime_and_ext("webp") == ("image/webp", "webp")
        assert get_mime_and_ext("tiff") == ("image/png", "png")
        assert format_from_filename("out.JPG") == "jpeg"

    def test_file_sniffing(self):
        assert is_activity_file("ride.GPX")
        assert is_activity_file("upload", "application/vnd.garmin.tcx+xml")
        assert not is_activity_file("ride.fit")
        assert is_gpx_file("ride.gpx") and not is_gpx_file("ride.tcx")
        assert is_tcx_file("upload", "application/vnd.garmin.tcx+xml")
        assert is_image_file("photo.jpeg")
        assert is_image_file("blob", "image/heic")
        assert not is_image_file("photo.jpg", "text/plain")

    @pytest.mark.parametrize("fmt, magic", [("png", b"\x89PNG"), ("jpeg", b"\xff\xd8"), ("webp", b"RIFF")])
    def test_encode(self, fmt, magic):
        data = encode_image(Image.new("RGB", (8, 8), (10, 20, 30)), fmt)
        assert data.startswith(magic)

    def test_save_infers_format_from_extension(self, tmp_path):
        path = save_image(Image.new("RGB", (8, 8)), tmp_path / "out.jpg")
        with Image.open(path) as img:
            assert img.format == "JPEG"
