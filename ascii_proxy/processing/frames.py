from __future__ import annotations

from typing import Tuple

from PIL import Image

# Glyph cells are roughly twice as tall as they are wide.
CELL_ASPECT = 0.45
MIN_COLUMNS = 20
MAX_COLUMNS = 300


def fit_image(img: Image.Image, max_width: int = 400, max_height: int = 200) -> Image.Image:
    """Shrink a still image into ``max_width`` x ``max_height`` keeping its aspect."""
    width, height = img.size
    if width > max_width:
        height = max_width / width * height
        width = max_width
    if height > max_height:
        width = max_height / height * width
        height = max_height
    size = (max(1, int(width)), max(1, int(height)))
    if size == img.size:
        return img
    return img.resize(size, Image.BILINEAR)


def analysis_size(
    src_width: int, src_height: int, resolution: int = 100, max_columns: int = 160
) -> Tuple[int, int]:
    base = min(160, max_columns)
    scaled = int(base * (resolution / 100))
    columns = max(MIN_COLUMNS, min(MAX_COLUMNS, scaled))
    rows = max(1, int(columns * (src_height / src_width) * CELL_ASPECT))
    return columns, rows


def image_to_buffer(img: Image.Image, width: int, height: int) -> bytes:
    """Draw ``img`` into a ``width`` x ``height`` RGBA buffer."""
    frame = img.convert("RGBA")
    if frame.size != (width, height):
        frame = frame.resize((width, height), Image.BILINEAR)
    return frame.tobytes()


def thumbnail_buffer(img: Image.Image, limit: int = 100) -> Tuple[bytes, int, int]:
    width = min(limit, img.width)
    height = min(limit, img.height)
    return image_to_buffer(img, width, height), width, height
