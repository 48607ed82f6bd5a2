from __future__ import annotations

import math

_EDGE = (255, 255, 255, 255)
_FLAT = (0, 0, 0, 255)


def detect_edges(
    pixels: bytes,
    width: int,
    height: int,
    threshold: float,
    intensity: float,
) -> bytes:
    """Return a black/white RGBA edge mask the same length as ``pixels``.

    Gradients come from the red channel through a reduced six-tap Sobel
    kernel. ``threshold`` is a 0-100 percentage of the 0-255 range and
    ``intensity`` scales the gradient magnitude in percent. The outer ring
    of the frame has no full neighbourhood and is always opaque black.
    """

    size = len(pixels)
    stride = width * 4
    threshold_value = threshold * 2.55
    scale = intensity / 100

    out = bytearray(_FLAT * (width * height))

    for y in range(1, height - 1):
        row = y * stride
        for x in range(1, width - 1):
            i = row + x * 4
            top = i - stride
            bottom = i + stride
            left = i - 4
            right = i + 4

            # The trailing taps of the last interior row/column can land past
            # the end of the frame; such pixels are treated as flat.
            if bottom + stride >= size or right + stride >= size:
                continue

            gx = (
                -pixels[left] + pixels[right]
                - 2 * pixels[left + 4] + 2 * pixels[right + 4]
                - pixels[left + stride] + pixels[right + stride]
            )
            gy = (
                -pixels[top] + pixels[bottom]
                - 2 * pixels[top + 4] + 2 * pixels[bottom + 4]
                - pixels[top + stride] + pixels[bottom + stride]
            )

            strength = min(255.0, math.sqrt(gx * gx + gy * gy) * scale)
            if strength > threshold_value:
                out[i:i + 4] = _EDGE

    return bytes(out)
