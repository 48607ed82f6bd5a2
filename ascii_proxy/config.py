import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Tuple


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _clamp(value, low, high):
    return max(low, min(high, value))


_RANGES = {
    "contrast": (0.0, 300.0),
    "brightness": (0.0, 200.0),
    "edge_threshold": (0.0, 100.0),
    "edge_intensity": (0.0, 500.0),
    "resolution": (10, 200),
    "font_size": (1, 96),
}


@dataclass(frozen=True)
class ProxySettings:
    source_url: str
    port: int
    timeout: float
    retries: int
    log_level: str
    contrast: float
    brightness: float
    resolution: int
    max_columns: int
    char_set: str
    custom_chars: str
    color_mode: bool
    color_filter: str
    edge_detection: bool
    edge_threshold: float
    edge_intensity: float
    font_family: str
    font_size: int
    char_spacing_x: int
    char_spacing_y: int
    inverted: bool
    worker_queue_size: int
    result_timeout: float

    @classmethod
    def from_env(cls) -> "ProxySettings":
        return cls(
            source_url=os.getenv("SOURCE_URL", "http://127.0.0.1:8080/snapshot.jpg"),
            port=int(os.getenv("PORT", "5600")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            contrast=float(os.getenv("CONTRAST", "100")),
            brightness=float(os.getenv("BRIGHTNESS", "100")),
            resolution=int(os.getenv("RESOLUTION", "100")),
            max_columns=int(os.getenv("MAX_COLUMNS", "160")),
            char_set=os.getenv("CHAR_SET", "standard").lower(),
            custom_chars=os.getenv("CUSTOM_CHARS", ""),
            color_mode=_env_bool("COLOR_MODE", "false"),
            color_filter=os.getenv("COLOR_FILTER", "none").lower(),
            edge_detection=_env_bool("EDGE_DETECTION", "false"),
            edge_threshold=float(os.getenv("EDGE_THR", "50")),
            edge_intensity=float(os.getenv("EDGE_INTENSITY", "100")),
            font_family=os.getenv("FONT_FAMILY", "monospace"),
            font_size=int(os.getenv("FONT_SIZE", "8")),
            char_spacing_x=int(os.getenv("CHAR_SPACING_X", "0")),
            char_spacing_y=int(os.getenv("CHAR_SPACING_Y", "0")),
            inverted=_env_bool("INVERTED", "false"),
            worker_queue_size=int(os.getenv("WORKER_QUEUE_SIZE", "8")),
            result_timeout=float(os.getenv("RESULT_TIMEOUT", "5.0")),
        )

    def with_updates(self, **changes: Any) -> "ProxySettings":
        """Return a copy with ``changes`` applied.

        Values are coerced to the declared field type and clamped to their
        slider range. Color mode and inverted mode exclude each other: turning
        one on turns the other off.
        """

        declared = {field.name: field.type for field in fields(self)}
        coerced: dict[str, Any] = {}
        for name, raw_value in changes.items():
            if name not in declared:
                raise KeyError(name)
            kind = declared[name]
            if kind in (bool, "bool"):
                value: Any = _coerce_bool(raw_value)
            elif kind in (int, "int"):
                value = int(raw_value)
            elif kind in (float, "float"):
                value = float(raw_value)
            else:
                value = str(raw_value)
            if name in _RANGES:
                value = _clamp(value, *_RANGES[name])
            if name in ("char_set", "color_filter"):
                value = value.lower()
            coerced[name] = value

        if coerced.get("color_mode"):
            coerced["inverted"] = False
        elif coerced.get("inverted"):
            coerced["color_mode"] = False

        return replace(self, **coerced)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


SETTINGS = ProxySettings.from_env()


DEFAULT_PALETTE: Tuple[Tuple[int, int, int], ...] = (
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
    (255, 255, 255),
    (0, 0, 0),
)


LOGGER_NAME = "ascii-proxy"


def configure_logging(settings: ProxySettings = SETTINGS) -> logging.Logger:
    logging.basicConfig(level=settings.log_level)
    return logging.getLogger(LOGGER_NAME)
