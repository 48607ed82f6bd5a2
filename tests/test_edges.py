import random

from ascii_proxy.processing.edges import detect_edges


def _frame(width, height, red_at):
    pixels = bytearray()
    for y in range(height):
        for x in range(width):
            value = red_at(x, y)
            pixels += bytes((value, value, value, 255))
    return bytes(pixels)


def _pixel(buffer, width, x, y):
    i = (y * width + x) * 4
    return tuple(buffer[i:i + 4])


def _border(width, height):
    for y in range(height):
        for x in range(width):
            if x in (0, width - 1) or y in (0, height - 1):
                yield x, y


def test_mask_has_same_length_as_input() -> None:
    pixels = _frame(7, 5, lambda x, y: (x * 37 + y * 11) % 256)
    assert len(detect_edges(pixels, 7, 5, 50, 100)) == len(pixels)


def test_border_ring_is_opaque_black_for_any_content() -> None:
    rng = random.Random(1234)
    for _ in range(5):
        pixels = _frame(6, 6, lambda x, y: rng.randrange(256))
        mask = detect_edges(pixels, 6, 6, 0, 500)
        for x, y in _border(6, 6):
            assert _pixel(mask, 6, x, y) == (0, 0, 0, 255)


def test_uniform_frame_has_no_edges() -> None:
    pixels = _frame(5, 5, lambda x, y: 180)
    mask = detect_edges(pixels, 5, 5, 10, 100)
    assert mask == bytes((0, 0, 0, 255)) * 25


def test_vertical_step_is_marked_white() -> None:
    pixels = _frame(6, 6, lambda x, y: 255 if x >= 3 else 0)
    mask = detect_edges(pixels, 6, 6, 50, 100)
    assert _pixel(mask, 6, 2, 2) == (255, 255, 255, 255)


def test_threshold_at_maximum_suppresses_everything() -> None:
    pixels = _frame(6, 6, lambda x, y: 255 if x >= 3 else 0)
    mask = detect_edges(pixels, 6, 6, 100, 100)
    assert mask == bytes((0, 0, 0, 255)) * 36


def test_input_buffer_is_not_modified() -> None:
    pixels = bytearray(_frame(6, 6, lambda x, y: 255 if x >= 3 else 0))
    before = bytes(pixels)
    detect_edges(pixels, 6, 6, 50, 100)
    assert bytes(pixels) == before


def test_last_interior_row_stays_black_when_taps_overrun() -> None:
    # The +stride taps of row 3 in a 5x5 frame read past the end of the buffer.
    pixels = _frame(5, 5, lambda x, y: 255 if y == 4 else 0)
    mask = detect_edges(pixels, 5, 5, 0, 100)

    for x in range(5):
        assert _pixel(mask, 5, x, 3) == (0, 0, 0, 255)
    # Row 2 reaches the bright row through its bottom + stride tap.
    for x in range(1, 4):
        assert _pixel(mask, 5, x, 2) == (255, 255, 255, 255)


def test_horizontal_taps_reach_two_columns_right() -> None:
    # Only (3, 2) is lit: for pixel (1, 2) it is the right + 4 tap, so gx = 2 * 30.
    pixels = _frame(6, 6, lambda x, y: 30 if (x, y) == (3, 2) else 0)

    assert _pixel(detect_edges(pixels, 6, 6, 23, 100), 6, 1, 2) == (255, 255, 255, 255)
    assert _pixel(detect_edges(pixels, 6, 6, 24, 100), 6, 1, 2) == (0, 0, 0, 255)


def test_vertical_taps_reach_two_rows_down() -> None:
    # Only (2, 3) is lit: for pixel (2, 1) it is the bottom + stride tap, so gy = 30.
    pixels = _frame(6, 6, lambda x, y: 30 if (x, y) == (2, 3) else 0)

    assert _pixel(detect_edges(pixels, 6, 6, 11, 100), 6, 2, 1) == (255, 255, 255, 255)
    assert _pixel(detect_edges(pixels, 6, 6, 12, 100), 6, 2, 1) == (0, 0, 0, 255)
    # Doubling the intensity doubles the strength past the higher threshold.
    assert _pixel(detect_edges(pixels, 6, 6, 23, 200), 6, 2, 1) == (255, 255, 255, 255)
