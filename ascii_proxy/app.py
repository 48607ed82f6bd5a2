from __future__ import annotations

import queue
import threading
from concurrent.futures import TimeoutError as FutureTimeout
from html import escape
from string import Template

from flask import Flask, jsonify, request
from PIL import Image, UnidentifiedImageError

from .config import SETTINGS, ProxySettings, configure_logging
from .infrastructure.network import SourceFetcher, resolve_source_url
from .infrastructure.responses import LastGoodOutput, send_ascii, send_last_good
from .processing.analysis import auto_adjust, auto_transition, suggest_character_set
from .processing.converter import ConversionConfig, Presentation
from .processing.frames import analysis_size, fit_image, image_to_buffer, thumbnail_buffer
from .processing.palette import PaletteStore
from .processing.quantize import DensityRamp
from .worker import ConversionResponse, ConversionWorker, UpdatePalette, message_from_dict

APP_VERSION = "1.0.0"

_FORMATS = ("text", "html", "ansi")

_INDEX = Template(
    """<!doctype html>
<html>
<head><meta charset="utf-8"><title>ASCII Proxy $APP_VERSION</title></head>
<body>
<h1>ASCII Proxy <small>$APP_VERSION</small></h1>
<ul>$endpoint_items</ul>
</body>
</html>
"""
)


def create_app(
    settings: ProxySettings | None = None,
    fetcher: SourceFetcher | None = None,
    worker: ConversionWorker | None = None,
) -> Flask:
    settings = settings or SETTINGS
    logger = configure_logging(settings)
    app = Flask(__name__)
    app.config["ASCII_SETTINGS"] = settings

    palette = PaletteStore()
    fetcher = fetcher or SourceFetcher(settings=settings)
    worker = worker or ConversionWorker(palette=palette.snapshot(), maxsize=settings.worker_queue_size)
    worker.start()
    last_good = LastGoodOutput()
    app.extensions["ascii_worker"] = worker
    app.extensions["ascii_palette"] = palette

    def current() -> ProxySettings:
        return app.config["ASCII_SETTINGS"]

    def output_format() -> str:
        fmt = (request.args.get("format", "text") or "text").lower()
        return fmt if fmt in _FORMATS else "text"

    def convert(img: Image.Image) -> ConversionResponse:
        active = current()
        width, height = analysis_size(img.width, img.height, active.resolution, active.max_columns)
        future = worker.submit(
            image_to_buffer(img, width, height),
            width,
            height,
            ConversionConfig.from_settings(active),
            Presentation.from_settings(active),
            timeout=active.result_timeout,
        )
        return future.result(timeout=active.result_timeout)

    def respond(result: ConversionResponse, fmt: str):
        if result.delivered:
            return send_ascii(result.output, result.presentation, fmt, cache=last_good)
        cached = send_last_good(fmt, cache=last_good)
        if cached is not None:
            return cached
        return jsonify(error=result.error, sequence=result.sequence), 422

    def uploaded_image() -> Image.Image | None:
        upload = request.files.get("image")
        if upload is None:
            return None
        return Image.open(upload.stream).convert("RGB")

    publish_lock = threading.Lock()

    def publish_palette(change, *args):
        # Mutate and post under one lock so the worker sees updates in store order.
        with publish_lock:
            colors = change(*args)
            worker.post(UpdatePalette(colors))
        return jsonify(palette=[list(color) for color in colors])

    @app.route("/ascii")
    def ascii_frame():
        fmt = output_format()
        try:
            src = fetcher.fetch_source(resolve_source_url(request.args, current().source_url))
            return respond(convert(src), fmt)
        except queue.Full:
            return jsonify(error="Conversion worker busy"), 503
        except ValueError as exc:
            return jsonify(error=str(exc)), 400
        except (RuntimeError, FutureTimeout) as exc:
            logger.warning("ascii frame failed: %s", exc)
            cached = send_last_good(fmt, cache=last_good)
            if cached is not None:
                return cached
            return (f"Source Error: {exc}", 502)

    @app.route("/convert", methods=["POST"])
    def convert_upload():
        fmt = output_format()
        try:
            img = uploaded_image()
        except UnidentifiedImageError:
            return jsonify(error="Unsupported image"), 400
        if img is None:
            return jsonify(error="Missing 'image' upload"), 400
        try:
            return respond(convert(fit_image(img)), fmt)
        except queue.Full:
            return jsonify(error="Conversion worker busy"), 503
        except FutureTimeout:
            return jsonify(error="Conversion timed out"), 504

    @app.route("/messages", methods=["POST"])
    def post_message():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify(error="Expected a JSON object"), 400
        try:
            message = message_from_dict(payload)
        except ValueError as exc:
            return jsonify(error=str(exc)), 400

        if isinstance(message, UpdatePalette):
            return publish_palette(palette.replace, message.palette)

        try:
            future = worker.post(message, timeout=current().result_timeout)
        except queue.Full:
            return jsonify(error="Conversion worker busy"), 503
        try:
            result = future.result(timeout=current().result_timeout)
        except FutureTimeout:
            return jsonify(error="Conversion timed out"), 504
        return jsonify(result.to_dict()), 200 if result.delivered else 422

    @app.route("/palette", methods=["GET", "PUT", "POST"])
    def palette_view():
        if request.method == "GET":
            return jsonify(palette=[list(color) for color in palette.snapshot()])

        payload = request.get_json(silent=True) or {}
        try:
            if request.method == "PUT":
                return publish_palette(palette.replace, payload.get("palette") or [])
            return publish_palette(palette.add, payload.get("color"))
        except (TypeError, ValueError) as exc:
            return jsonify(error=str(exc)), 400

    @app.route("/palette/<int:index>", methods=["DELETE"])
    def palette_remove(index: int):
        try:
            return publish_palette(palette.remove, index)
        except IndexError as exc:
            return jsonify(error=str(exc)), 404

    @app.route("/palette/reset", methods=["POST"])
    def palette_reset():
        return publish_palette(palette.reset)

    @app.route("/settings", methods=["GET", "PATCH"])
    def settings_view():
        if request.method == "GET":
            return jsonify(current().as_dict())

        payload = request.get_json(silent=True) or {}
        errors: dict[str, str] = {}
        applied: dict[str, object] = {}
        updated = current()

        for name, raw_value in payload.items():
            try:
                candidate = updated.with_updates(**{name: raw_value})
                if name == "char_set":
                    DensityRamp.parse(candidate.char_set)
            except KeyError:
                errors[name] = "Unknown setting"
                continue
            except (TypeError, ValueError):
                errors[name] = "Invalid value"
                continue
            updated = candidate
            applied[name] = getattr(updated, name)

        app.config["ASCII_SETTINGS"] = updated
        status = 400 if errors else 200
        return (
            jsonify(updated=applied, errors=errors, settings=updated.as_dict()),
            status,
        )

    def analysis_source() -> Image.Image:
        img = uploaded_image()
        if img is not None:
            return img
        return fetcher.fetch_source(resolve_source_url(request.args, current().source_url))

    @app.route("/settings/auto-adjust", methods=["POST"])
    def settings_auto_adjust():
        try:
            pixels, _, _ = thumbnail_buffer(analysis_source())
        except (RuntimeError, UnidentifiedImageError, ValueError) as exc:
            return jsonify(error=str(exc)), 502
        active = current()
        contrast, brightness = auto_adjust(pixels)
        updated = active.with_updates(contrast=round(contrast), brightness=round(brightness))
        app.config["ASCII_SETTINGS"] = updated
        return jsonify(
            contrast=updated.contrast,
            brightness=updated.brightness,
            transition={
                "contrast": [round(value) for value in auto_transition(active.contrast, contrast)],
                "brightness": [round(value) for value in auto_transition(active.brightness, brightness)],
            },
        )

    @app.route("/settings/auto-chars", methods=["POST"])
    def settings_auto_chars():
        try:
            pixels, _, _ = thumbnail_buffer(analysis_source())
        except (RuntimeError, UnidentifiedImageError, ValueError) as exc:
            return jsonify(error=str(exc)), 502
        active = current()
        chars = suggest_character_set(pixels, active.edge_detection)
        app.config["ASCII_SETTINGS"] = active.with_updates(char_set="custom", custom_chars=chars)
        return jsonify(char_set="custom", custom_chars=chars)

    @app.route("/health")
    def health():
        active = current()
        return jsonify(
            ok=worker.is_alive(),
            worker_state=worker.state.value,
            fps=worker.meter.fps(),
            palette_size=len(palette),
            color_mode=active.color_mode,
            edge_detection=active.edge_detection,
            char_set=active.char_set,
        )

    @app.route("/")
    def index():
        endpoints = [
            ("ASCII Frame", "/ascii?format=text", "Plain glyph grid of the source"),
            ("Colored Frame", "/ascii?format=html", "One styled span per glyph"),
            ("Terminal Frame", "/ascii?format=ansi", "24-bit ANSI color codes"),
            ("Settings", "/settings", "Current conversion settings"),
            ("Palette", "/palette", "Custom filter colors"),
            ("Health", "/health", "Worker status and frame rate"),
        ]
        endpoint_items = "".join(
            f'<li><a href="{escape(href)}">{escape(name)}</a> {escape(desc)}</li>'
            for name, href, desc in endpoints
        )
        return _INDEX.substitute(APP_VERSION=APP_VERSION, endpoint_items=endpoint_items)

    return app


# Expose a module-level Flask application for WSGI servers importing ``ascii_proxy.app:app``.
app = create_app()
application = app
