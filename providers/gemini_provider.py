"""
Google Gemini analysis backend — uses the google-genai SDK.

The model is asked for application/json output; the text it returns is handed
back untouched and validated by contracts.py.
"""
from __future__ import annotations

import logging
import time

from google import genai
from google.genai import types as genai_types

from providers.base import AnalysisBackend, AnalysisPayload

logger = logging.getLogger(__name__)


class GeminiBackend(AnalysisBackend):

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.name     = "google"
        self.model_id = model
        self._client  = genai.Client(api_key=api_key)
        self._config  = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
        )

    async def invoke(self, payload: AnalysisPayload) -> str:
        contents: list = [payload.text]
        contents.extend(
            genai_types.Part.from_bytes(data=img.data, mime_type=img.mime_type)
            for img in payload.images
        )

        t0 = time.monotonic()

        response = await self._client.aio.models.generate_content(
            model=self.model_id,
            contents=contents,
            config=self._config,
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        usage      = response.usage_metadata
        logger.info(
            "[%s] %s OK — images=%d in=%s out=%s latency=%dms",
            self.full_name,
            payload.variant.value,
            len(payload.images),
            getattr(usage, "prompt_token_count", "?"),
            getattr(usage, "candidates_token_count", "?"),
            latency_ms,
        )
        return response.text or ""
