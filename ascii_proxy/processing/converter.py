from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from ..config import ProxySettings
from .edges import detect_edges
from .filters import RGB, ColorFilter, apply_color_filter, luma, to_rgb
from .quantize import DensityRamp, normalize, quantize_color, quantize_gray


class ConversionError(ValueError):
    """A frame could not be converted; only that frame is affected."""


class FrameSizeError(ConversionError):
    pass


class EmptyDensityRampError(ConversionError):
    pass


@dataclass(frozen=True)
class ConversionConfig:
    contrast: float = 100
    brightness: float = 100
    density: DensityRamp = DensityRamp.STANDARD
    custom_density: str = ""
    color_mode: bool = False
    color_filter: ColorFilter = ColorFilter.NONE
    edge_detection: bool = False
    edge_threshold: float = 50
    edge_intensity: float = 100
    inverted: bool = False

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> "ConversionConfig":
        return cls(
            contrast=settings.contrast,
            brightness=settings.brightness,
            density=DensityRamp.parse(settings.char_set),
            custom_density=settings.custom_chars,
            color_mode=settings.color_mode,
            color_filter=ColorFilter.parse(settings.color_filter),
            edge_detection=settings.edge_detection,
            edge_threshold=settings.edge_threshold,
            edge_intensity=settings.edge_intensity,
            inverted=settings.inverted,
        )

    @property
    def ramp(self) -> str:
        return self.density.characters(self.custom_density)


@dataclass(frozen=True)
class Presentation:
    """Typography forwarded untouched to whoever renders the glyphs."""

    font_family: str = "monospace"
    font_size: int = 8
    char_spacing_x: int = 0
    char_spacing_y: int = 0
    inverted: bool = False

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> "Presentation":
        return cls(
            font_family=settings.font_family,
            font_size=settings.font_size,
            char_spacing_x=settings.char_spacing_x,
            char_spacing_y=settings.char_spacing_y,
            inverted=settings.inverted,
        )


@dataclass(frozen=True)
class ColoredGlyph:
    char: str
    rgb: RGB


@dataclass(frozen=True)
class PlainGlyphGrid:
    rows: Tuple[str, ...]

    def text(self) -> str:
        return "".join(row + "\n" for row in self.rows)


@dataclass(frozen=True)
class ColoredGlyphGrid:
    rows: Tuple[Tuple[ColoredGlyph, ...], ...]

    def text(self) -> str:
        return "".join("".join(glyph.char for glyph in row) + "\n" for row in self.rows)


ConversionResult = Union[PlainGlyphGrid, ColoredGlyphGrid]


def validate_frame(pixels: bytes, width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise FrameSizeError(f"Frame dimensions must be positive, got {width}x{height}")
    expected = width * height * 4
    if len(pixels) != expected:
        raise FrameSizeError(
            f"Buffer holds {len(pixels)} bytes but {width}x{height} RGBA needs {expected}"
        )


def convert_frame(
    pixels: bytes,
    width: int,
    height: int,
    config: ConversionConfig,
    palette: Sequence[RGB] = (),
) -> ConversionResult:
    """Turn one RGBA frame into a glyph grid.

    ``palette`` is the snapshot used by the ``custom`` color filter. Nothing
    is returned for a frame that fails validation or has an empty density
    ramp; a :class:`ConversionError` is raised instead.
    """

    validate_frame(pixels, width, height)
    ramp = config.ramp
    if not ramp:
        raise EmptyDensityRampError("Selected character set is empty")

    if config.edge_detection:
        pixels = detect_edges(
            pixels, width, height, config.edge_threshold, config.edge_intensity
        )

    ramp_length = len(ramp)
    contrast = config.contrast
    brightness = config.brightness

    if config.color_mode:
        color_filter = config.color_filter
        colored_rows = []
        for y in range(height):
            row = []
            for x in range(width):
                i = (y * width + x) * 4
                color = apply_color_filter(
                    pixels[i], pixels[i + 1], pixels[i + 2], color_filter, palette
                )
                adjusted = normalize(luma(*color), contrast, brightness)
                row.append(
                    ColoredGlyph(ramp[quantize_color(adjusted, ramp_length)], to_rgb(color))
                )
            colored_rows.append(tuple(row))
        return ColoredGlyphGrid(rows=tuple(colored_rows))

    rows = []
    for y in range(height):
        line = []
        for x in range(width):
            i = (y * width + x) * 4
            adjusted = normalize(luma(pixels[i], pixels[i + 1], pixels[i + 2]), contrast, brightness)
            line.append(ramp[quantize_gray(adjusted, ramp_length)])
        rows.append("".join(line))
    return PlainGlyphGrid(rows=tuple(rows))
