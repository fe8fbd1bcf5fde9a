"""
Backend manager — owns the process-wide analysis backend.

The backend is built on first use from config and then shared read-only by
every request. Tests swap it with set_backend() / reset_backend() or inject a
stub straight into server.build_web_app().
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from providers.base import AnalysisBackend

logger = logging.getLogger(__name__)

# Module-level cache
_backend: Optional[AnalysisBackend] = None


def _build_backend() -> AnalysisBackend:
    if not config.GEMINI_API_KEY:
        raise RuntimeError(
            "No analysis backend available.\n"
            "Set GEMINI_API_KEY (or GOOGLE_API_KEY) in the environment or .env"
        )
    from providers.gemini_provider import GeminiBackend
    backend = GeminiBackend(config.GEMINI_API_KEY, config.GEMINI_MODEL)
    logger.info("Loaded backend: %s", backend.full_name)
    return backend


def get_backend() -> AnalysisBackend:
    global _backend
    if _backend is None:
        _backend = _build_backend()
    return _backend


def set_backend(backend: AnalysisBackend) -> None:
    global _backend
    _backend = backend


def reset_backend() -> None:
    global _backend
    _backend = None
