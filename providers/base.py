"""
Shared types and base class for analysis backends.
"""
from __future__ import annotations

import enum
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class Variant(str, enum.Enum):
    """The three request shapes. Each has its own template and schema."""
    SINGLE_IMAGE = "single_image"
    BARCODE      = "barcode"
    COMPARE      = "compare"


# ── Payload types ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImagePart:
    """An image buffer bound for the backend."""
    data: bytes
    mime_type: str


@dataclass(frozen=True)
class AnalysisPayload:
    """Exactly what goes over the wire: instruction text, then 0–2 images."""
    variant: Variant
    text: str
    images: tuple[ImagePart, ...] = ()


def detect_mime(data: bytes) -> str:
    """Guess an image MIME type from its magic bytes."""
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"GIF8":
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def parse_json_response(raw: str, source: str) -> dict:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure or when the root is not an object.
    """
    text = (raw or "").strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", source, (raw or "")[:300])
        raise ValueError(f"[{source}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        logger.error("[%s] JSON root is %s, expected object", source, type(data).__name__)
        raise ValueError(f"[{source}] JSON root must be an object")
    return data


# ── Abstract base ──────────────────────────────────────────────────────────────

class AnalysisBackend(ABC):
    """Base class every analysis backend must implement."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.5-flash"

    @abstractmethod
    async def invoke(self, payload: AnalysisPayload) -> str:
        """Send payload in a single call and return the raw response text."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
