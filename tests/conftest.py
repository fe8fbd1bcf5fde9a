"""
Shared pytest fixtures.

Every test gets a fresh UPLOAD_DIR under tmp_path so leaked files are easy to
detect, and a clean backend cache so nothing reaches the real Gemini API.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import config                      # noqa: E402
from providers import manager      # noqa: E402
from providers.base import AnalysisBackend, AnalysisPayload  # noqa: E402
from upload_store import UploadStore  # noqa: E402

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
PNG_BYTES  = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class StubBackend(AnalysisBackend):
    """Records every payload and replies with a canned text or exception."""

    def __init__(self, response: str = "", exc: Exception | None = None):
        self.name     = "stub"
        self.model_id = "echo"
        self.response = response
        self.exc      = exc
        self.calls: list[AnalysisPayload] = []

    async def invoke(self, payload: AnalysisPayload) -> str:
        self.calls.append(payload)
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Redirect UPLOAD_DIR to a fresh tmp directory for every test."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    yield path


@pytest.fixture(autouse=True)
def reset_backend(monkeypatch):
    """Each test starts with no cached backend and no API key."""
    monkeypatch.setattr(config, "GEMINI_API_KEY", None)
    manager.reset_backend()
    yield
    manager.reset_backend()


@pytest.fixture
def store(upload_dir) -> UploadStore:
    return UploadStore(str(upload_dir))


@pytest.fixture
def single_doc() -> dict:
    return {
        "brief_summary": "A sugary chocolate bar that does not suit your weight-loss goal.",
        "green_flags": [],
        "red_flags": [
            "🚩 Sugar: Over 40g per 100g, which is far above what your goal allows in one snack.",
            "🚩 Palm oil: High in saturated fat that can raise cholesterol when eaten often.",
        ],
        "shock_comparison": "More sugar than 2 Gulab Jamuns",
        "better_alternative": ["High-protein, low-sugar bars", "The Whole Truth Protein Bar"],
        "pro_tip": "💡 Pair with a handful of almonds to slow the sugar spike.",
        "confidence_score": 80,
        "final_verdict": [{"is_good": False}, "🔴 NO - Too much sugar for your goal."],
    }


@pytest.fixture
def barcode_doc(single_doc) -> dict:
    doc = dict(single_doc)
    doc["green_flags"] = ["None found"]
    return doc


@pytest.fixture
def compare_doc() -> dict:
    side_a = {
        "vibe_check": "Fiber Powerhouse",
        "health_score": 8,
        "pros": ["✅ High fiber", "✅ Low sugar", "✅ Whole grains"],
        "cons": ["🚩 Bland taste", "🚩 Pricey", "🚩 Small pack"],
    }
    side_b = {
        "vibe_check": "Sugar Trap",
        "health_score": 3,
        "pros": ["✅ Tasty", "✅ Cheap", "✅ Filling"],
        "cons": ["🚩 Loaded with sugar", "🚩 Refined flour", "🚩 Palm oil"],
    }
    return {
        "battle_intro": "Crunchy fibre takes on a sugar rush.",
        "product_a": side_a,
        "product_b": side_b,
        "the_trade_off": "If you choose Product A, you get fibre but lose some taste.",
        "hero_ingredient": "Oat bran",
        "pro_tip": "💡 Add fresh fruit to Product A for natural sweetness.",
        "final_recommendation": [{"winner": "Product A"}, "Pick the fibre, skip the sugar."],
    }


@pytest.fixture
def stub_backend():
    """Factory: stub_backend(doc_or_text=None, exc=None) → StubBackend."""
    def make(doc=None, exc: Exception | None = None) -> StubBackend:
        text = doc if isinstance(doc, str) or doc is None else json.dumps(doc, ensure_ascii=False)
        return StubBackend(response=text or "", exc=exc)
    return make
