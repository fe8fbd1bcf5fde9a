"""
pipeline.py — one function per endpoint that drives a request end to end:

    normalize → assemble → invoke → parse → compose

The caller owns the upload handles (server.py opens a store.scope() around
the whole call), so files are deleted whichever way these functions exit.
Every failure is raised as a PipelineError; turning it into a response is
server.py's job.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import contracts
import normalizer
import prompts
from errors import BackendInvocationFailed
from providers import manager
from providers.base import AnalysisBackend, AnalysisPayload, Variant
from upload_store import UploadHandle, UploadStore

logger = logging.getLogger(__name__)

# Public 500 message per variant
FAILURE_MESSAGES: dict[Variant, str] = {
    Variant.SINGLE_IMAGE: "AI Analysis failed",
    Variant.BARCODE:      "AI Analysis failed",
    Variant.COMPARE:      "Comparison failed",
}


async def invoke(backend: Optional[AnalysisBackend], payload: AnalysisPayload) -> str:
    """
    Single backend call. No retry: one failure is the request's failure.
    With no injected backend the process-wide one from providers.manager is
    used, built on first use.
    """
    try:
        if backend is None:
            backend = manager.get_backend()
        return await backend.invoke(payload)
    except Exception as exc:
        logger.error(
            "[%s] %s invocation failed: %s",
            getattr(backend, "full_name", "backend"),
            payload.variant.value,
            exc,
            exc_info=True,
        )
        raise BackendInvocationFailed() from exc


# ── Response composer ─────────────────────────────────────────────────────────

def compose_single(analysis: contracts.AnalysisEnvelope) -> dict:
    return {"success": True, **analysis.to_wire()}


def compose_barcode(
    analysis: contracts.AnalysisEnvelope,
    ctx: normalizer.AnalysisContext,
) -> dict:
    product = ctx.product
    return {
        "success": True,
        "product_details": {
            "name":        product.name if product else None,
            "image":       product.image_url if product else None,
            "ingredients": product.ingredients_text if product else None,
        },
        "analysis": analysis.to_wire(),
    }


def compose_compare(analysis: contracts.AnalysisEnvelope) -> dict:
    return {"success": True, "comparison": analysis.to_wire()}


def compose_failure(message: str) -> dict:
    return {"success": False, "message": message}


# ── Drivers ───────────────────────────────────────────────────────────────────

async def run_single(
    handles: list[UploadHandle],
    user_goals: Any,
    store: UploadStore,
    backend: Optional[AnalysisBackend],
) -> dict:
    # Image reads run off the event loop
    ctx     = await asyncio.to_thread(normalizer.normalize_single, handles, user_goals, store)
    payload = prompts.assemble(ctx, Variant.SINGLE_IMAGE)
    raw     = await invoke(backend, payload)
    return compose_single(contracts.parse(raw, Variant.SINGLE_IMAGE))


async def run_barcode(body: Any, backend: Optional[AnalysisBackend]) -> dict:
    ctx     = normalizer.normalize_barcode(body)
    payload = prompts.assemble(ctx, Variant.BARCODE)
    raw     = await invoke(backend, payload)
    return compose_barcode(contracts.parse(raw, Variant.BARCODE), ctx)


async def run_compare(
    handles: list[UploadHandle],
    user_goals: Any,
    store: UploadStore,
    backend: Optional[AnalysisBackend],
) -> dict:
    ctx     = await asyncio.to_thread(normalizer.normalize_compare, handles, user_goals, store)
    payload = prompts.assemble(ctx, Variant.COMPARE)
    raw     = await invoke(backend, payload)
    return compose_compare(contracts.parse(raw, Variant.COMPARE))
