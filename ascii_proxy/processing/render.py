from __future__ import annotations

from html import escape
from typing import Dict

from .converter import ColoredGlyphGrid, ConversionResult, Presentation


def render_text(result: ConversionResult) -> str:
    return result.text()


def render_markup(result: ConversionResult) -> str:
    """Render one styled span per glyph and a ``<br>`` after every row."""
    if not isinstance(result, ColoredGlyphGrid):
        return escape(result.text())
    lines = []
    for row in result.rows:
        spans = "".join(
            f'<span style="color:rgb({glyph.rgb[0]},{glyph.rgb[1]},{glyph.rgb[2]})">'
            f"{escape(glyph.char)}</span>"
            for glyph in row
        )
        lines.append(spans + "<br>")
    return "".join(lines)


def render_ansi(result: ConversionResult) -> str:
    if not isinstance(result, ColoredGlyphGrid):
        return result.text()
    lines = []
    for row in result.rows:
        cells = "".join(
            f"\x1b[38;2;{glyph.rgb[0]};{glyph.rgb[1]};{glyph.rgb[2]}m{glyph.char}" for glyph in row
        )
        lines.append(cells + "\x1b[0m\n")
    return "".join(lines)


def presentation_style(presentation: Presentation) -> Dict[str, str]:
    style = {
        "font-family": presentation.font_family or "monospace",
        "font-size": f"{presentation.font_size or 8}px",
        "letter-spacing": f"{presentation.char_spacing_x or 0}px",
        "line-height": f"{(presentation.font_size or 8) + (presentation.char_spacing_y or 0)}px",
        "white-space": "pre",
    }
    if presentation.inverted:
        style["background-color"] = "white"
        style["color"] = "black"
    else:
        style["background-color"] = "black"
        style["color"] = "white"
    return style
