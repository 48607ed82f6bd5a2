"""Frame-to-glyph conversion pipeline components."""

from .analysis import auto_adjust, auto_transition, suggest_character_set
from .converter import (
    ColoredGlyph,
    ColoredGlyphGrid,
    ConversionConfig,
    ConversionError,
    EmptyDensityRampError,
    FrameSizeError,
    PlainGlyphGrid,
    Presentation,
    convert_frame,
)
from .edges import detect_edges
from .filters import ColorFilter, apply_color_filter, luma, nearest_palette_color, to_rgb
from .frames import analysis_size, fit_image, image_to_buffer, thumbnail_buffer
from .palette import PaletteStore, hex_to_rgb, parse_color
from .quantize import CHARACTER_SETS, DensityRamp, normalize, quantize_color, quantize_gray

__all__ = [
    "auto_adjust",
    "auto_transition",
    "suggest_character_set",
    "ColoredGlyph",
    "ColoredGlyphGrid",
    "ConversionConfig",
    "ConversionError",
    "EmptyDensityRampError",
    "FrameSizeError",
    "PlainGlyphGrid",
    "Presentation",
    "convert_frame",
    "detect_edges",
    "ColorFilter",
    "apply_color_filter",
    "luma",
    "nearest_palette_color",
    "to_rgb",
    "analysis_size",
    "fit_image",
    "image_to_buffer",
    "thumbnail_buffer",
    "PaletteStore",
    "hex_to_rgb",
    "parse_color",
    "CHARACTER_SETS",
    "DensityRamp",
    "normalize",
    "quantize_color",
    "quantize_gray",
]
