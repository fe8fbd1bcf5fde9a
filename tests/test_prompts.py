"""
Tests for prompts.py.

Covers:
  - each variant renders its own template with the user's goals
  - contract clauses the backend must receive are present verbatim
  - barcode context renders N/A sentinels and units
  - images are attached in order, text-only for barcode
  - assembly is deterministic
"""
from __future__ import annotations

import pytest

from normalizer import AnalysisContext, normalize_barcode
from prompts import BARCODE_TEMPLATE, assemble, render_product_context
from providers.base import ImagePart, Variant

from conftest import JPEG_BYTES, PNG_BYTES

IMG_A = ImagePart(JPEG_BYTES, "image/jpeg")
IMG_B = ImagePart(PNG_BYTES, "image/png")


class TestSingleImage:
    def test_goals_interpolated(self):
        p = assemble(AnalysisContext("peanut allergy", images=(IMG_A,)), Variant.SINGLE_IMAGE)
        assert "**User Profile:**\npeanut allergy\n" in p.text
        assert p.images == (IMG_A,)
        assert p.variant is Variant.SINGLE_IMAGE

    def test_contract_clauses_present(self):
        text = assemble(AnalysisContext("x", images=(IMG_A,)), Variant.SINGLE_IMAGE).text
        assert "AT LEAST 2" in text
        assert "Gulab Jamuns" in text
        assert "If the product is \"Good,\" set this to []." in text
        assert "Deduct 20% for wrinkles, 30% for partial data, and 10% for \"may contain\"" in text
        assert '"better_alternative"' in text
        assert '{ "is_good": true }' in text

    def test_dollar_in_goals_is_kept_literally(self):
        text = assemble(AnalysisContext("budget $5", images=(IMG_A,)), Variant.SINGLE_IMAGE).text
        assert "budget $5" in text


class TestBarcode:
    def test_text_only(self):
        ctx = normalize_barcode({"product_name": "Choco Bar"})
        p = assemble(ctx, Variant.BARCODE)
        assert p.images == ()

    def test_layout_is_template_then_user_then_product(self):
        ctx = normalize_barcode({"product_name": "Choco Bar", "userGoals": "keto"})
        text = assemble(ctx, Variant.BARCODE).text
        assert text.startswith(BARCODE_TEMPLATE)
        user_at    = text.index('User Goals / Allergies: "keto"')
        product_at = text.index("Product Name: Choco Bar")
        assert len(BARCODE_TEMPLATE) < user_at < product_at

    def test_none_found_sentinel_requested(self):
        text = assemble(normalize_barcode({}), Variant.BARCODE).text
        assert 'use exactly one string: "None found"' in text

    def test_missing_nutrients_render_na(self):
        text = render_product_context(normalize_barcode({"nutriments": {"sugars_100g": 40}}))
        assert "- Sugar: 40g" in text
        assert "- Salt: N/Ag" in text
        assert "- Protein: N/Ag" in text
        assert "- Fat: N/Ag" in text
        assert "- Energy: N/A kcal" in text
        assert "Ingredients: Not available" in text

    def test_product_context_requires_metadata(self):
        with pytest.raises(ValueError):
            render_product_context(AnalysisContext("x"))


class TestCompare:
    def test_two_images_in_order(self):
        p = assemble(AnalysisContext("vegan", images=(IMG_A, IMG_B)), Variant.COMPARE)
        assert p.images == (IMG_A, IMG_B)
        assert "- **Goals:** vegan" in p.text

    def test_duel_rules_present(self):
        text = assemble(AnalysisContext("x", images=(IMG_A, IMG_B)), Variant.COMPARE).text
        assert "Anonymity Rule" in text
        assert "exactly 3 distinct strings" in text
        assert "automatic score of 0" in text
        assert text.count('"vibe_check"') == 2
        assert "$side_shape" not in text


def test_assembly_is_deterministic():
    ctx = normalize_barcode({"product_name": "Oats", "nutriments": {"fat_100g": 7}})
    assert assemble(ctx, Variant.BARCODE) == assemble(ctx, Variant.BARCODE)
