"""Tests for the frame source helpers."""

import io

import pytest


pytest.importorskip("requests")

from PIL import Image

from ascii_proxy.config import SETTINGS
from ascii_proxy.infrastructure.network import SourceFetcher, _join_base_and_path, resolve_source_url


def _png_bytes(size=(4, 2), color=(10, 20, 30)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


class FakeResponse:
    def __init__(self, content=b"", status_error=None):
        self.content = content
        self._status_error = status_error

    def raise_for_status(self):
        if self._status_error is not None:
            raise self._status_error


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        outcome = self._responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _fetcher(session, **overrides):
    settings = SETTINGS.with_updates(**overrides) if overrides else SETTINGS
    return SourceFetcher(session_factory=lambda: session, settings=settings, sleep=lambda _: None)


def test_resolve_source_url_defaults_to_settings():
    assert resolve_source_url({}) == SETTINGS.source_url


def test_resolve_source_url_prefers_explicit_default():
    assert resolve_source_url({}, "http://camera/frame.png") == "http://camera/frame.png"


def test_resolve_source_url_accepts_direct_override():
    override = "http://example.com/image.png"
    assert resolve_source_url({"source_url": override, "source_base": "http://ignored"}) == override


@pytest.mark.parametrize(
    "base_url, path, expected",
    [
        ("http://foo:1234", "abc/def.png", "http://foo:1234/abc/def.png"),
        ("http://foo:1234/", "/abc/def.png", "http://foo:1234/abc/def.png"),
        ("http://foo:1234/snap.jpg", None, "http://foo:1234/snap.jpg"),
    ],
)
def test_join_base_and_path(base_url, path, expected):
    assert _join_base_and_path(base_url, path) == expected


def test_resolve_source_url_rejects_invalid_base():
    with pytest.raises(ValueError):
        resolve_source_url({"source_base": "not-a-valid-base"})


def test_fetch_source_decodes_image():
    session = FakeSession([FakeResponse(_png_bytes())])
    fetcher = _fetcher(session)

    img = fetcher.fetch_source("http://camera/frame.png")

    assert img.mode == "RGB"
    assert img.size == (4, 2)
    assert session.calls == [("http://camera/frame.png", SETTINGS.timeout)]
    assert session.headers["User-Agent"].startswith("ascii-proxy")


def test_fetch_source_retries_until_success():
    session = FakeSession([OSError("boom"), FakeResponse(_png_bytes())])
    fetcher = _fetcher(session, retries=2)

    assert fetcher.fetch_source("http://camera/frame.png").size == (4, 2)
    assert len(session.calls) == 2


def test_fetch_source_raises_after_exhausting_retries():
    session = FakeSession([OSError("down")] * 2)
    fetcher = _fetcher(session, retries=1)

    with pytest.raises(RuntimeError, match="down"):
        fetcher.fetch_source("http://camera/frame.png")
    assert len(session.calls) == 2
