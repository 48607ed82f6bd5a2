from __future__ import annotations

import io
import logging
import time
from typing import Callable, Mapping
from urllib.parse import urlsplit

import requests
from PIL import Image

from ..config import LOGGER_NAME, SETTINGS, ProxySettings

LOGGER = logging.getLogger(LOGGER_NAME)

SessionFactory = Callable[[], requests.Session]


def _join_base_and_path(base_url: str, path: str | None) -> str:
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid source_base override: {base_url}")
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def resolve_source_url(args: Mapping[str, str], default: str | None = None) -> str:
    """Pick the frame source for a request.

    ``source_url`` wins outright; otherwise ``source_base`` is joined with an
    optional ``source_path``. Without overrides the configured URL is used.
    """

    direct = args.get("source_url")
    if direct:
        return direct
    base = args.get("source_base")
    if base:
        return _join_base_and_path(base, args.get("source_path"))
    return default or SETTINGS.source_url


class SourceFetcher:
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        settings: ProxySettings = SETTINGS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._settings = settings
        self._sleep = sleep
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "ascii-proxy/1.0"})
        return session

    def fetch_source(self, source_url: str | None = None) -> Image.Image:
        target_url = source_url or self._settings.source_url
        last_exception: Exception | None = None
        for attempt in range(1, self._settings.retries + 2):
            try:
                response = self._session.get(target_url, timeout=self._settings.timeout)
                response.raise_for_status()
                return Image.open(io.BytesIO(response.content)).convert("RGB")
            except Exception as exc:
                last_exception = exc
                LOGGER.warning("source fetch attempt %d failed: %s", attempt, exc)
                self._sleep(0.4 * attempt)
        raise RuntimeError(last_exception)
