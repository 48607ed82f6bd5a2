from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Sequence, Tuple

RGB = Tuple[int, int, int]
# Filtered channels stay unrounded until a glyph has been chosen.
Color = Tuple[float, float, float]


class ColorFilter(str, Enum):
    NONE = "none"
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, name: str | None) -> "ColorFilter":
        """Map a filter name to a member; unknown names mean no filter."""
        if not name:
            return cls.NONE
        try:
            return cls(str(name).lower())
        except ValueError:
            # "full" is what the color select sends when nothing is chosen.
            return cls.NONE


def luma(r: float, g: float, b: float) -> float:
    return (r * 299 + g * 587 + b * 114) / 1000


def _channel(value: float) -> float:
    return min(255.0, value)


def to_rgb(color: Color) -> RGB:
    """Round a filtered color to the 0-255 integers stored on a glyph."""
    return tuple(int(round(channel)) for channel in color)


def nearest_palette_color(rgb: RGB, palette: Sequence[RGB]) -> RGB:
    """Return the palette entry closest to ``rgb``; the first one wins ties."""
    r, g, b = rgb
    best = palette[0]
    best_distance = float("inf")
    for R, G, B in palette:
        distance = (R - r) ** 2 + (G - g) ** 2 + (B - b) ** 2
        if distance < best_distance:
            best_distance = distance
            best = (R, G, B)
    return best


def _identity(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    return r, g, b


def _grayscale(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    gray = _channel(luma(r, g, b))
    return gray, gray, gray


def _sepia(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    return (
        _channel(r * 0.393 + g * 0.769 + b * 0.189),
        _channel(r * 0.349 + g * 0.686 + b * 0.168),
        _channel(r * 0.272 + g * 0.534 + b * 0.131),
    )


def _red(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    return r, 0, 0


def _green(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    return 0, g, 0


def _blue(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    return 0, 0, b


def _custom(r: int, g: int, b: int, palette: Sequence[RGB]) -> Color:
    if not palette:
        return r, g, b
    return nearest_palette_color((r, g, b), palette)


_FILTERS: Dict[ColorFilter, Callable[[int, int, int, Sequence[RGB]], Color]] = {
    ColorFilter.NONE: _identity,
    ColorFilter.GRAYSCALE: _grayscale,
    ColorFilter.SEPIA: _sepia,
    ColorFilter.RED: _red,
    ColorFilter.GREEN: _green,
    ColorFilter.BLUE: _blue,
    ColorFilter.CUSTOM: _custom,
}


def apply_color_filter(
    r: int,
    g: int,
    b: int,
    color_filter: ColorFilter = ColorFilter.NONE,
    palette: Sequence[RGB] = (),
) -> Color:
    return _FILTERS[color_filter](r, g, b, palette)
