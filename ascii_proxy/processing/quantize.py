from __future__ import annotations

import math
from enum import Enum


class DensityRamp(str, Enum):
    STANDARD = "standard"
    BLOCKS = "blocks"
    SYMBOLS = "symbols"
    REVERSED = "reversed"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value) -> "DensityRamp":
        """Accept a ramp name or the legacy 0-4 select index."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) or (isinstance(value, str) and value.isdigit()):
            members = list(cls)
            index = int(value)
            if not 0 <= index < len(members):
                raise ValueError(f"Unknown character set index: {value}")
            return members[index]
        return cls(str(value).lower())

    def characters(self, custom: str = "") -> str:
        if self is DensityRamp.CUSTOM:
            return custom
        return CHARACTER_SETS[self]


CHARACTER_SETS = {
    DensityRamp.STANDARD: " .,:;+*?%S#@",
    DensityRamp.BLOCKS: " ░▒▓█",
    DensityRamp.SYMBOLS: " ·-~=+*#%@$",
    DensityRamp.REVERSED: " @%#*+=·",
}


def normalize(value: float, contrast: float = 100, brightness: float = 100) -> float:
    adjusted = (value - 127.5) * (contrast / 100) + 127.5 + (brightness - 100)
    return max(0.0, min(255.0, adjusted))


def quantize_color(adjusted: float, ramp_length: int) -> int:
    index = math.floor((adjusted / 255) * ramp_length)
    return max(0, min(ramp_length - 1, index))


def quantize_gray(adjusted: float, ramp_length: int) -> int:
    # Grayscale output scales by n - 1, so only full white reaches the last glyph.
    index = math.floor((adjusted / 255) * (ramp_length - 1))
    return max(0, min(ramp_length - 1, index))
