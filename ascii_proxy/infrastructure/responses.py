from __future__ import annotations

import threading
from html import escape
from typing import Optional

from flask import Response

from ..processing.converter import ConversionResult, Presentation
from ..processing.render import presentation_style, render_ansi, render_markup, render_text


class LastGoodOutput:
    """Most recent successfully rendered body per output format."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bodies: dict[str, str] = {}

    def remember(self, fmt: str, body: str) -> None:
        with self._lock:
            self._bodies[fmt] = body

    def get(self, fmt: str) -> Optional[str]:
        with self._lock:
            return self._bodies.get(fmt)


_MIMETYPES = {
    "text": "text/plain; charset=utf-8",
    "ansi": "text/plain; charset=utf-8",
    "html": "text/html; charset=utf-8",
}


def render_body(result: ConversionResult, presentation: Presentation, fmt: str) -> str:
    if fmt == "ansi":
        return render_ansi(result)
    if fmt == "html":
        style = ";".join(f"{key}:{value}" for key, value in presentation_style(presentation).items())
        return f'<pre style="{escape(style)}">{render_markup(result)}</pre>'
    return render_text(result)


def send_ascii(
    result: ConversionResult,
    presentation: Presentation,
    fmt: str,
    cache: LastGoodOutput,
) -> Response:
    body = render_body(result, presentation, fmt)
    cache.remember(fmt, body)
    return Response(body, content_type=_MIMETYPES.get(fmt, _MIMETYPES["text"]))


def send_last_good(fmt: str, cache: LastGoodOutput) -> Response | None:
    body = cache.get(fmt)
    if body is None:
        return None
    return Response(body, content_type=_MIMETYPES.get(fmt, _MIMETYPES["text"]))
