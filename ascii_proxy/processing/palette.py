from __future__ import annotations

import threading
from typing import Iterable, List, Sequence, Tuple

from ..config import DEFAULT_PALETTE

RGB = Tuple[int, int, int]


def hex_to_rgb(value: str) -> RGB:
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Expected #rrggbb color, got {value!r}")
    return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)


def parse_color(value) -> RGB:
    """Accept ``"#rrggbb"`` or an ``[r, g, b]`` sequence of byte values."""
    if isinstance(value, str):
        return hex_to_rgb(value)
    try:
        r, g, b = (int(channel) for channel in value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected an [r, g, b] triple, got {value!r}") from exc
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise ValueError(f"Color channel out of range: {channel}")
    return r, g, b


class PaletteStore:
    """Custom palette consulted by the ``custom`` color filter.

    Readers always get an immutable snapshot, so a conversion never observes a
    palette that changes underneath it.
    """

    def __init__(self, colors: Iterable[Sequence[int]] = DEFAULT_PALETTE) -> None:
        self._lock = threading.Lock()
        self._colors: List[RGB] = [parse_color(color) for color in colors]

    def snapshot(self) -> Tuple[RGB, ...]:
        with self._lock:
            return tuple(self._colors)

    def replace(self, colors: Iterable[Sequence[int]]) -> Tuple[RGB, ...]:
        parsed = [parse_color(color) for color in colors]
        with self._lock:
            self._colors = parsed
            return tuple(self._colors)

    def add(self, color) -> Tuple[RGB, ...]:
        parsed = parse_color(color)
        with self._lock:
            self._colors.append(parsed)
            return tuple(self._colors)

    def remove(self, index: int) -> Tuple[RGB, ...]:
        with self._lock:
            if not 0 <= index < len(self._colors):
                raise IndexError(f"No palette color at index {index}")
            del self._colors[index]
            return tuple(self._colors)

    def reset(self) -> Tuple[RGB, ...]:
        return self.replace(DEFAULT_PALETTE)

    def __len__(self) -> int:
        with self._lock:
            return len(self._colors)
