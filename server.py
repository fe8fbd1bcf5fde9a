"""
server.py — aiohttp web server exposing the three analysis endpoints.

Endpoints:
  POST /api/analyze   → multipart: image (1) + userGoals
  POST /api/barcode   → JSON: product_name, ingredients_text, nutriments,
                        image_url, userGoals
  POST /api/compare   → multipart: image (2) + userGoals
  GET  /health        → plain-text health check

Every response is JSON of the form {"success": true, ...} or
{"success": false, "message": "..."}. Uploaded photos are written to the
UploadStore inside a scope() block and are gone before the handler returns.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional

from aiohttp import BodyPartReader, hdrs, web

import config
import pipeline
from errors import InvalidPayload, PayloadTooLarge, PipelineError
from providers.base import AnalysisBackend, Variant
from upload_store import UploadHandle, UploadStore

logger = logging.getLogger(__name__)

STORE_KEY   = web.AppKey("upload_store", UploadStore)
BACKEND_KEY = web.AppKey("backend", AnalysisBackend)


def _max_body_bytes() -> int:
    return config.MAX_UPLOAD_MB * 1024 * 1024


# ── Helpers ────────────────────────────────────────────────────────────────────

def _failure(message: str, status: int) -> web.Response:
    return web.json_response(pipeline.compose_failure(message), status=status)


async def _respond(
    variant: Variant,
    endpoint: str,
    run: Callable[[], Awaitable[dict]],
) -> web.Response:
    """Run one pipeline call and turn its outcome into a JSON response."""
    try:
        return web.json_response(await run())
    except PipelineError as exc:
        if exc.status >= 500:
            logger.warning("%s failed: %s", endpoint, type(exc).__name__)
            return _failure(pipeline.FAILURE_MESSAGES[variant], exc.status)
        logger.info("%s rejected (%d): %s", endpoint, exc.status, exc.message)
        return _failure(exc.message, exc.status)
    except Exception:
        logger.exception("Unhandled error in %s", endpoint)
        return _failure(pipeline.FAILURE_MESSAGES[variant], 500)


async def _read_form(
    request: web.Request,
    store: UploadStore,
    handles: list[UploadHandle],
) -> dict[str, str]:
    """
    Stream a multipart body: every `image` file part goes straight into the
    store (and into `handles`), other parts are returned as text fields.
    A body that is not multipart yields no images and no fields.
    """
    fields: dict[str, str] = {}
    if not request.content_type.startswith("multipart/"):
        return fields
    if request.content_length and request.content_length > _max_body_bytes():
        raise PayloadTooLarge()

    try:
        reader = await request.multipart()
        async for part in reader:
            if not isinstance(part, BodyPartReader):
                continue
            if part.name == "image" and part.filename:
                data = bytes(await part.read())
                # Disk writes run off the event loop
                handles.append(await asyncio.to_thread(
                    store.store,
                    data,
                    part.headers.get(hdrs.CONTENT_TYPE, ""),
                    part.filename,
                ))
            elif part.name:
                fields[part.name] = await part.text()
    except web.HTTPRequestEntityTooLarge as exc:
        logger.info("Multipart body over %d MB", config.MAX_UPLOAD_MB)
        raise PayloadTooLarge() from exc
    except ValueError as exc:
        logger.info("Unreadable multipart body: %s", exc)
        raise InvalidPayload() from exc
    return fields


async def _read_json(request: web.Request) -> object:
    """Barcode bodies are lenient: an empty body counts as {}."""
    try:
        raw = await request.text()
    except web.HTTPRequestEntityTooLarge as exc:
        raise PayloadTooLarge() from exc
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.info("Invalid JSON body: %s", exc)
        raise InvalidPayload() from exc


# ── Request handlers ───────────────────────────────────────────────────────────

async def handle_analyze(request: web.Request) -> web.Response:
    store   = request.app[STORE_KEY]
    backend = request.app.get(BACKEND_KEY)

    async def run() -> dict:
        with store.scope() as handles:
            form = await _read_form(request, store, handles)
            return await pipeline.run_single(handles, form.get("userGoals"), store, backend)

    return await _respond(Variant.SINGLE_IMAGE, "/api/analyze", run)


async def handle_barcode(request: web.Request) -> web.Response:
    backend = request.app.get(BACKEND_KEY)

    async def run() -> dict:
        body = await _read_json(request)
        return await pipeline.run_barcode(body, backend)

    return await _respond(Variant.BARCODE, "/api/barcode", run)


async def handle_compare(request: web.Request) -> web.Response:
    store   = request.app[STORE_KEY]
    backend = request.app.get(BACKEND_KEY)

    async def run() -> dict:
        with store.scope() as handles:
            form = await _read_form(request, store, handles)
            return await pipeline.run_compare(handles, form.get("userGoals"), store, backend)

    return await _respond(Variant.COMPARE, "/api/compare", run)


async def handle_health(request: web.Request) -> web.Response:
    """Health check — returns 200 OK. Use with uptime monitors."""
    pending = len(request.app[STORE_KEY].pending())
    return web.Response(
        text=f"OK — {pending} uploads pending",
        content_type="text/plain",
    )


# ── App factory ────────────────────────────────────────────────────────────────

def build_web_app(
    backend: Optional[AnalysisBackend] = None,
    store: Optional[UploadStore] = None,
) -> web.Application:
    """
    Without an explicit backend, requests use the process-wide one from
    providers.manager, built on first use.
    """
    app = web.Application(client_max_size=_max_body_bytes())
    app[STORE_KEY] = store or UploadStore()
    if backend is not None:
        app[BACKEND_KEY] = backend
    app.router.add_post("/api/analyze", handle_analyze)
    app.router.add_post("/api/barcode", handle_barcode)
    app.router.add_post("/api/compare", handle_compare)
    app.router.add_get("/health",       handle_health)
    return app


async def start_server(app: Optional[web.Application] = None) -> web.AppRunner:
    """Start the web server. Returns runner so caller can shut it down cleanly."""
    app    = app or build_web_app()
    runner = web.AppRunner(app, access_log=logger)
    await runner.setup()
    site = web.TCPSite(runner, config.SERVER_HOST, config.SERVER_PORT)
    await site.start()
    logger.info(
        "🥗 Nutri-X API listening on %s:%d  (model: %s)",
        config.SERVER_HOST,
        config.SERVER_PORT,
        config.GEMINI_MODEL,
    )
    return runner
