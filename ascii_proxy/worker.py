"""Background conversion worker and the messages it exchanges with callers."""

from __future__ import annotations

import base64
import binascii
import itertools
import logging
import queue
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_PALETTE, LOGGER_NAME
from .processing.converter import (
    ColoredGlyphGrid,
    ConversionConfig,
    ConversionError,
    ConversionResult,
    Presentation,
    convert_frame,
)
from .processing.filters import RGB, ColorFilter
from .processing.palette import PaletteStore, parse_color
from .processing.quantize import DensityRamp
from .processing.render import render_markup

LOGGER = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class UpdatePalette:
    palette: Tuple[RGB, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "palette", tuple(parse_color(color) for color in self.palette))


@dataclass(frozen=True)
class ConversionRequest:
    buffer: bytes
    width: int
    height: int
    config: ConversionConfig = field(default_factory=ConversionConfig)
    presentation: Presentation = field(default_factory=Presentation)
    sequence: int = 0

    def __post_init__(self) -> None:
        # Take a private copy so the sender cannot mutate the frame in flight.
        if not isinstance(self.buffer, bytes):
            object.__setattr__(self, "buffer", bytes(self.buffer))


class ConversionStatus(str, Enum):
    DELIVERED = "delivered"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ConversionResponse:
    sequence: int
    status: ConversionStatus
    config: ConversionConfig
    presentation: Presentation
    output: Optional[ConversionResult] = None
    error: Optional[str] = None

    @property
    def color_mode(self) -> bool:
        return self.config.color_mode

    @property
    def delivered(self) -> bool:
        return self.status is ConversionStatus.DELIVERED

    def to_dict(self) -> Dict[str, Any]:
        if self.output is None:
            rendered = None
        elif isinstance(self.output, ColoredGlyphGrid):
            rendered = render_markup(self.output)
        else:
            rendered = self.output.text()
        return {
            "renderedOutput": rendered,
            "colorMode": self.color_mode,
            "fontFamily": self.presentation.font_family,
            "fontSize": self.presentation.font_size,
            "charSpacingX": self.presentation.char_spacing_x,
            "charSpacingY": self.presentation.char_spacing_y,
            "inverted": self.presentation.inverted,
            "sequence": self.sequence,
            "status": self.status.value,
            "error": self.error,
        }


Message = Any


def _decode_buffer(raw: Any) -> bytes:
    if isinstance(raw, str):
        return base64.b64decode(raw, validate=True)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    return bytes(int(value) for value in raw)


def message_from_dict(payload: Mapping[str, Any]) -> Message:
    """Build a worker message from its wire form.

    ``{"type": "updatePalette", "palette": [...]}`` becomes
    :class:`UpdatePalette`; anything else is read as a conversion request.
    A string ``buffer`` is taken to be base64.
    """

    if payload.get("type") == "updatePalette":
        return UpdatePalette(tuple(payload.get("palette") or ()))

    try:
        config = ConversionConfig(
            contrast=float(payload.get("contrast", 100)),
            brightness=float(payload.get("brightness", 100)),
            density=DensityRamp.parse(payload.get("characterDensitySelector", DensityRamp.STANDARD)),
            custom_density=str(payload.get("customDensityString") or ""),
            color_mode=bool(payload.get("colorMode", False)),
            color_filter=ColorFilter.parse(payload.get("colorFilterName")),
            edge_detection=bool(payload.get("edgeDetection", False)),
            edge_threshold=float(payload.get("edgeThreshold", 50)),
            edge_intensity=float(payload.get("edgeIntensity", 100)),
            inverted=bool(payload.get("inverted", False)),
        )
        presentation = Presentation(
            font_family=str(payload.get("fontFamily") or "monospace"),
            font_size=int(payload.get("fontSize", 8)),
            char_spacing_x=int(payload.get("charSpacingX", 0)),
            char_spacing_y=int(payload.get("charSpacingY", 0)),
            inverted=bool(payload.get("inverted", False)),
        )
        return ConversionRequest(
            buffer=_decode_buffer(payload["buffer"]),
            width=int(payload["width"]),
            height=int(payload["height"]),
            config=config,
            presentation=presentation,
        )
    except KeyError as exc:
        raise ValueError(f"Missing field: {exc.args[0]}") from exc
    except (TypeError, binascii.Error) as exc:
        raise ValueError(f"Malformed conversion request: {exc}") from exc


class FrameRateMeter:
    """Count deliveries inside a sliding one-second window."""

    def __init__(self, window: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = window
        self._clock = clock
        self._stamps: Deque[float] = deque()
        self._lock = threading.Lock()

    def _trim(self, now: float) -> None:
        while self._stamps and now - self._stamps[0] > self._window:
            self._stamps.popleft()

    def tick(self) -> None:
        now = self._clock()
        with self._lock:
            self._stamps.append(now)
            self._trim(now)

    def fps(self) -> int:
        now = self._clock()
        with self._lock:
            self._trim(now)
            return len(self._stamps)


class WorkerState(str, Enum):
    STOPPED = "stopped"
    IDLE = "idle"
    CONVERTING = "converting"


_STOP = object()

ResultCallback = Callable[[ConversionResponse], None]


class ConversionWorker:
    """Run conversions one at a time on a dedicated thread.

    Messages are handled strictly in the order they were posted, so a palette
    update always lands before any conversion queued after it. The palette
    lives inside the worker and only changes in response to
    :class:`UpdatePalette` messages.
    """

    def __init__(
        self,
        palette: Iterable[Sequence[int]] = DEFAULT_PALETTE,
        on_result: ResultCallback | None = None,
        maxsize: int = 8,
        name: str = "ascii-worker",
    ) -> None:
        self._inbox: "queue.Queue[Message]" = queue.Queue(maxsize=maxsize)
        self._palette = PaletteStore(palette)
        self._on_result = on_result
        self._name = name
        self._thread: threading.Thread | None = None
        self._sequence = itertools.count(1)
        self._pending: Dict[int, Future] = {}
        self._pending_lock = threading.Lock()
        self._closed = threading.Event()
        self._abandon = threading.Event()
        self.meter = FrameRateMeter()
        self.state = WorkerState.STOPPED

    @property
    def palette(self) -> Tuple[RGB, ...]:
        return self._palette.snapshot()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ConversionWorker":
        if self.is_alive():
            return self
        self._closed.clear()
        self._abandon.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self.state = WorkerState.IDLE
        self._thread.start()
        LOGGER.info("conversion worker started")
        return self

    def stop(self, timeout: float | None = 2.0) -> None:
        """Stop the thread and fail every request still waiting for a response.

        Queued messages are drained first unless the inbox stays full for
        ``timeout`` seconds; then the thread exits after its current message.
        """
        self._closed.set()
        if self.is_alive():
            assert self._thread is not None
            try:
                self._inbox.put(_STOP, timeout=timeout)
            except queue.Full:
                LOGGER.warning("worker inbox still full, abandoning queued messages")
                self._abandon.set()
            self._thread.join(timeout)
            LOGGER.info("conversion worker stopped")
        self.state = WorkerState.STOPPED
        self._fail_pending()

    def _fail_pending(self) -> None:
        with self._pending_lock:
            pending, self._pending = self._pending, {}
        for sequence, future in pending.items():
            future.set_exception(RuntimeError(f"conversion worker stopped before frame {sequence}"))

    def drain(self) -> None:
        """Block until every message posted so far has been handled."""
        self._inbox.join()

    def post(self, message: Message, timeout: float | None = None) -> Future | None:
        """Queue ``message``; conversion requests get a future for their response."""
        future: Future | None = None
        with self._pending_lock:
            if self._closed.is_set():
                raise RuntimeError("conversion worker is stopped")
            if isinstance(message, ConversionRequest):
                message = replace(message, sequence=next(self._sequence))
                future = Future()
                self._pending[message.sequence] = future
        try:
            self._inbox.put(message, timeout=timeout)
        except queue.Full:
            if future is not None:
                with self._pending_lock:
                    self._pending.pop(message.sequence, None)
            raise
        return future

    def update_palette(self, colors: Iterable[Sequence[int]]) -> None:
        self.post(UpdatePalette(tuple(colors)))

    def submit(
        self,
        buffer: bytes,
        width: int,
        height: int,
        config: ConversionConfig,
        presentation: Presentation | None = None,
        timeout: float | None = None,
    ) -> Future:
        request = ConversionRequest(
            buffer=buffer,
            width=width,
            height=height,
            config=config,
            presentation=presentation or Presentation(),
        )
        future = self.post(request, timeout=timeout)
        assert future is not None
        return future

    def _run(self) -> None:
        while True:
            message = self._inbox.get()
            try:
                if message is _STOP:
                    return
                if isinstance(message, UpdatePalette):
                    self._palette.replace(message.palette)
                    LOGGER.debug("palette updated with %d colors", len(message.palette))
                elif isinstance(message, ConversionRequest):
                    self._deliver(self._convert(message))
                else:
                    LOGGER.warning("ignoring unknown message %s", type(message).__name__)
            finally:
                self._inbox.task_done()
            if self._abandon.is_set():
                return

    def _convert(self, request: ConversionRequest) -> ConversionResponse:
        self.state = WorkerState.CONVERTING
        try:
            output = convert_frame(
                request.buffer,
                request.width,
                request.height,
                request.config,
                self._palette.snapshot(),
            )
        except ConversionError as exc:
            LOGGER.warning("frame %d rejected: %s", request.sequence, exc)
            return self._rejected(request, str(exc))
        except Exception as exc:
            LOGGER.exception("frame %d failed", request.sequence)
            return self._rejected(request, str(exc))
        finally:
            self.state = WorkerState.IDLE
        return ConversionResponse(
            sequence=request.sequence,
            status=ConversionStatus.DELIVERED,
            config=request.config,
            presentation=request.presentation,
            output=output,
        )

    @staticmethod
    def _rejected(request: ConversionRequest, error: str) -> ConversionResponse:
        return ConversionResponse(
            sequence=request.sequence,
            status=ConversionStatus.REJECTED,
            config=request.config,
            presentation=request.presentation,
            error=error,
        )

    def _deliver(self, response: ConversionResponse) -> None:
        if response.delivered:
            self.meter.tick()
        if self._on_result is not None:
            try:
                self._on_result(response)
            except Exception:
                LOGGER.exception("result callback failed for frame %d", response.sequence)
        with self._pending_lock:
            future = self._pending.pop(response.sequence, None)
        if future is not None:
            future.set_result(response)
