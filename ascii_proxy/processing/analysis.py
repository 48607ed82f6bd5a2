"""Histogram-driven suggestions for contrast, brightness and character set."""

from __future__ import annotations

from typing import List, Tuple

from .filters import luma

CHARACTER_SET_OPTIONS = {
    "high_contrast": "@%#*+=-:. ",
    "detailed": " .:-=+*#%@",
    "balanced": " .'`^\",:;+*?%S#@",
    "edge_focused": "·-~=+*#%@$",
}


def luma_histogram(pixels: bytes) -> List[int]:
    histogram = [0] * 256
    for i in range(0, len(pixels) - 3, 4):
        histogram[int(round(luma(pixels[i], pixels[i + 1], pixels[i + 2])))] += 1
    return histogram


def _percentiles(histogram: List[int], low: float = 0.05, high: float = 0.95) -> Tuple[int, int]:
    total = sum(histogram)
    count = 0
    low_value = None
    high_value = 255
    for value, bucket in enumerate(histogram):
        count += bucket
        if low_value is None and count >= total * low:
            low_value = value
        if count >= total * high:
            high_value = value
            break
    return low_value or 0, high_value


def auto_adjust(pixels: bytes) -> Tuple[float, float]:
    """Return the ``(contrast, brightness)`` that stretches the middle 90% of lumas."""
    histogram = luma_histogram(pixels)
    if not sum(histogram):
        return 100.0, 100.0

    low, high = _percentiles(histogram)
    spread = high - low
    if spread <= 0:
        contrast = 150.0
    else:
        contrast = min(150.0, max(50.0, 255 / spread * 100))
    brightness = min(150.0, max(50.0, 100 + (127.5 - (low + spread / 2)) / 2.55))
    return contrast, brightness


def auto_transition(current: float, target: float, steps: int = 10) -> List[float]:
    """Intermediate values stepping from ``current`` to ``target``."""
    step = (target - current) / steps
    return [current + step * (index + 1) for index in range(steps)]


def suggest_character_set(pixels: bytes, edge_detection: bool = False) -> str:
    """Pick a ramp from the dark, mid and light share of the frame.

    Shares are fractions of the pixel count, not of the RGBA byte length, so
    the high contrast and detailed sets can actually be chosen.
    """
    if edge_detection:
        return CHARACTER_SET_OPTIONS["edge_focused"]

    histogram = luma_histogram(pixels)
    total = sum(histogram)
    dark = sum(histogram[:64])
    mid = sum(histogram[64:192])
    light = sum(histogram[192:])

    if total and dark > total / 8 and light > total / 8:
        return CHARACTER_SET_OPTIONS["high_contrast"]
    if total and mid > total / 2:
        return CHARACTER_SET_OPTIONS["detailed"]
    return CHARACTER_SET_OPTIONS["balanced"]
