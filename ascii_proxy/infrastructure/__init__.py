"""Infrastructure helpers for fetching frames and sending rendered output."""

from .network import SourceFetcher, resolve_source_url
from .responses import LastGoodOutput, render_body, send_ascii, send_last_good

__all__ = [
    "SourceFetcher",
    "resolve_source_url",
    "LastGoodOutput",
    "render_body",
    "send_ascii",
    "send_last_good",
]
