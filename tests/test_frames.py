import pytest

Image = pytest.importorskip("PIL.Image")

from ascii_proxy.processing.frames import analysis_size, fit_image, image_to_buffer, thumbnail_buffer


def test_fit_image_limits_width() -> None:
    assert fit_image(Image.new("RGB", (800, 400))).size == (400, 200)


def test_fit_image_limits_height() -> None:
    assert fit_image(Image.new("RGB", (100, 400))).size == (50, 200)


def test_fit_image_keeps_small_images() -> None:
    img = Image.new("RGB", (40, 20))

    assert fit_image(img) is img


def test_analysis_size_follows_aspect() -> None:
    assert analysis_size(40, 20) == (160, 36)


def test_analysis_size_scales_with_resolution() -> None:
    assert analysis_size(400, 200, resolution=50) == (80, 18)


def test_analysis_size_clamps_columns_and_rows() -> None:
    assert analysis_size(400, 10, resolution=10) == (20, 1)


def test_image_to_buffer_is_rgba() -> None:
    buffer = image_to_buffer(Image.new("RGB", (10, 10), (255, 0, 0)), 4, 3)

    assert len(buffer) == 4 * 3 * 4
    assert buffer[:4] == bytes((255, 0, 0, 255))


def test_thumbnail_buffer_caps_size() -> None:
    buffer, width, height = thumbnail_buffer(Image.new("RGB", (300, 50)))

    assert (width, height) == (100, 50)
    assert len(buffer) == width * height * 4
