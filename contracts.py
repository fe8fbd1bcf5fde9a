"""
contracts.py — the response schemas and the parser that enforces them.

The backend's text is untrusted until it has been decoded and validated
against the model for its variant. Anything that is not a JSON object of the
expected shape (missing keys, unknown keys, wrong types) is rejected as
MalformedResponse. Semantic rules from the prompt — minimum flag count,
exactly three pros/cons — are not checked here.

The two "tagged list" fields on the wire

    "final_verdict":        [{"is_good": true}, "🟢 YES - ..."]
    "final_recommendation": [{"winner": "Product A"}, "..."]

are held as Verdict / Recommendation records and turned back into the
two-element array only by to_wire().
"""
from __future__ import annotations

import logging
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from errors import MalformedResponse
from providers.base import Variant, parse_json_response

logger = logging.getLogger(__name__)


def _untag(value: Any, flag_key: str) -> Any:
    """[{flag_key: x}, "text"] → {flag_key: x, "message": "text"}"""
    if isinstance(value, (list, tuple)) and len(value) == 2 and isinstance(value[0], dict):
        return {**value[0], "message": value[1]}
    return value


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ── Records ───────────────────────────────────────────────────────────────────

class Verdict(_Strict):
    is_good: bool
    message: str


class Recommendation(_Strict):
    winner: Literal["Product A", "Product B", "Neither"]
    message: str


# ── Envelopes ─────────────────────────────────────────────────────────────────

class AnalysisEnvelope(_Strict):
    """Base for every variant's parsed result."""

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


class ProductAnalysis(AnalysisEnvelope):
    """Verdict for one product photographed by the client."""
    brief_summary: str
    green_flags: list[str]
    red_flags: list[str]
    # [] is the "not unhealthy" sentinel
    shock_comparison: Union[str, list[str]]
    # null or absent when the verdict is the best tier
    better_alternative: Optional[list[str]] = Field(default_factory=list)
    pro_tip: str
    confidence_score: int = Field(ge=0, le=100)
    final_verdict: Verdict

    @field_validator("green_flags", "red_flags", mode="before")
    @classmethod
    def _wrap_bare_sentinel(cls, value: Any) -> Any:
        # "None found" sent as a bare string instead of a one-item list
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("final_verdict", mode="before")
    @classmethod
    def _untag_verdict(cls, value: Any) -> Any:
        return _untag(value, "is_good")

    @field_serializer("final_verdict")
    def _tag_verdict(self, verdict: Verdict) -> list:
        return [{"is_good": verdict.is_good}, verdict.message]


class BarcodeAnalysis(ProductAnalysis):
    """
    Same shape as ProductAnalysis; empty flag lists are ["None found"] and
    shock_comparison is "None" for healthy products.
    """


class ComparisonSide(_Strict):
    vibe_check: str
    health_score: int = Field(ge=0, le=10)
    pros: list[str]
    cons: list[str]


class ComparisonAnalysis(AnalysisEnvelope):
    battle_intro: str
    product_a: ComparisonSide
    product_b: ComparisonSide
    the_trade_off: str
    hero_ingredient: str
    pro_tip: str
    final_recommendation: Recommendation

    @field_validator("final_recommendation", mode="before")
    @classmethod
    def _untag_recommendation(cls, value: Any) -> Any:
        return _untag(value, "winner")

    @field_serializer("final_recommendation")
    def _tag_recommendation(self, rec: Recommendation) -> list:
        return [{"winner": rec.winner}, rec.message]


SCHEMAS: dict[Variant, type[AnalysisEnvelope]] = {
    Variant.SINGLE_IMAGE: ProductAnalysis,
    Variant.BARCODE:      BarcodeAnalysis,
    Variant.COMPARE:      ComparisonAnalysis,
}


# ── Parser ────────────────────────────────────────────────────────────────────

def parse(raw: str, variant: Variant) -> AnalysisEnvelope:
    """Decode raw backend text and validate it against the variant's schema."""
    try:
        data = parse_json_response(raw, variant.value)
    except ValueError as exc:
        raise MalformedResponse() from exc

    try:
        return SCHEMAS[variant].model_validate(data)
    except ValidationError as exc:
        logger.error(
            "[%s] Response failed schema validation (%d error(s)): %s",
            variant.value, exc.error_count(), exc.errors(include_url=False)[:5],
        )
        raise MalformedResponse() from exc
