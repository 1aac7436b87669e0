import io

import pytest
from PIL import Image

from plate_inventory.exceptions import CanvasUnavailable, FileSizeError, ImageLoadError, InvalidImageError
from plate_inventory.imaging import (
    compress_for_report,
    fit_within,
    normalize_image,
    validate_image,
)


def _open(data):
    return Image.open(io.BytesIO(data))


def test_fit_within_keeps_aspect_ratio_and_never_upscales():
    assert fit_within(2048, 1536, 1024, 768) == (1024, 768)
    assert fit_within(1600, 900, 1024, 768) == (1024, 576)
    assert fit_within(800, 1600, 1024, 768) == (384, 768)
    assert fit_within(640, 480, 1024, 768) == (640, 480)


def test_normalize_scales_large_image_down_to_jpeg(make_image):
    result = _open(normalize_image(make_image(size=(1600, 900), fmt="PNG")))
    assert result.format == "JPEG"
    assert result.size == (1024, 576)
    assert result.mode == "RGB"


def test_normalize_leaves_small_image_size_alone(make_image):
    result = _open(normalize_image(make_image(size=(320, 200))))
    assert result.size == (320, 200)


def test_normalize_respects_custom_bounds(make_image):
    result = _open(normalize_image(make_image(size=(1000, 1000)), max_width=200, max_height=100))
    assert result.size == (100, 100)


def test_lower_quality_gives_smaller_output():
    buffer = io.BytesIO()
    Image.effect_noise((600, 400), 64).convert("RGB").save(buffer, format="PNG")
    noisy = buffer.getvalue()
    assert len(normalize_image(noisy, quality=0.2)) < len(normalize_image(noisy, quality=0.9))


def test_normalize_rejects_undecodable_bytes():
    with pytest.raises(ImageLoadError):
        normalize_image(b"definitely not an image")


def test_validate_image_checks_extension_and_content(make_image):
    validate_image(make_image(), "car.jpg")
    with pytest.raises(InvalidImageError):
        validate_image(make_image(), "car.gif")
    with pytest.raises(InvalidImageError):
        validate_image(b"garbage", "car.jpg")


def test_validate_image_size_limit(monkeypatch, make_image):
    monkeypatch.setattr("plate_inventory.imaging.MAX_FILE_SIZE", 10)
    with pytest.raises(FileSizeError):
        validate_image(make_image(), "car.jpg")


def test_report_thumbnail_is_bounded_and_flattened(make_image):
    thumbnail = compress_for_report(make_image(size=(900, 600), fmt="PNG"))
    assert thumbnail.mode == "RGB"
    assert thumbnail.size == (300, 200)


def test_report_thumbnail_boosts_contrast_around_mid_grey(make_image):
    thumbnail = compress_for_report(make_image(size=(50, 50), fmt="PNG", color=(228, 28, 128)))
    red, green, blue = thumbnail.getpixel((25, 25))
    assert red == 233
    assert green == 23
    assert blue == 128


def test_normalize_reports_unavailable_canvas(monkeypatch, make_image):
    data = make_image(size=(200, 100))

    def broken_save(self, *args, **kwargs):
        raise OSError("encoder jpeg not available")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    with pytest.raises(CanvasUnavailable) as exc_info:
        normalize_image(data)
    assert exc_info.value.status_code == 500


def _exif_jpeg(orientation):
    image = Image.new("RGB", (40, 20), (220, 20, 20))
    image.paste((20, 20, 220), (20, 0, 40, 20))
    exif = Image.Exif()
    exif[0x0112] = orientation
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=95, exif=exif)
    return buffer.getvalue()


def test_normalize_applies_rotated_orientation():
    assert _open(normalize_image(_exif_jpeg(6))).size == (20, 40)


def test_normalize_applies_mirrored_orientation():
    result = _open(normalize_image(_exif_jpeg(2)))
    assert result.size == (40, 20)
    red, _, blue = result.getpixel((5, 10))
    assert blue > red
