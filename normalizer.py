"""
normalizer.py — turns the three request shapes into one AnalysisContext.

  single image  → one ImagePart + goals
  barcode       → ProductMetadata (sentinels for anything missing) + goals
  compare       → two ImageParts + goals

Image bytes are read from the UploadStore here; the handles themselves stay
owned by the caller's store.scope() block, which deletes them afterwards.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import config
from errors import InsufficientImages, InvalidPayload, NoInputProvided, TooManyImages
from providers.base import ImagePart, detect_mime
from upload_store import UploadHandle, UploadStore

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NOT_AVAILABLE_TEXT = "Not available"

_GENERIC_MIME = {"", "application/octet-stream"}

# (payload key, label shown to the model, unit)
NUTRIENT_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("sugars_100g",      "Sugar",   "g"),
    ("salt_100g",        "Salt",    "g"),
    ("proteins_100g",    "Protein", "g"),
    ("fat_100g",         "Fat",     "g"),
    ("energy_kcal_100g", "Energy",  " kcal"),
)


@dataclass(frozen=True)
class ProductMetadata:
    """Product facts from a barcode lookup, as the client sent them."""
    name: Optional[str]
    ingredients_text: Optional[str]
    image_url: Optional[str]
    nutrients: dict[str, Any]

    def nutrient(self, key: str) -> str:
        """Display value for a nutrient, or the N/A sentinel."""
        value = self.nutrients.get(key)
        if value is None or value == "":
            return NOT_AVAILABLE
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)


@dataclass(frozen=True)
class AnalysisContext:
    user_goals: str
    product: Optional[ProductMetadata] = None
    images: tuple[ImagePart, ...] = ()


def _goals(raw: Any) -> str:
    text = raw.strip() if isinstance(raw, str) else ""
    return text or config.DEFAULT_USER_GOALS


def _image_part(store: UploadStore, handle: UploadHandle) -> ImagePart:
    data = store.read(handle)
    mime = handle.mime_type if handle.mime_type not in _GENERIC_MIME else detect_mime(data)
    return ImagePart(data=data, mime_type=mime)


def normalize_single(
    handles: list[UploadHandle],
    user_goals: Any,
    store: UploadStore,
) -> AnalysisContext:
    if not handles:
        raise NoInputProvided()
    if len(handles) > 1:
        raise TooManyImages()
    return AnalysisContext(
        user_goals=_goals(user_goals),
        images=(_image_part(store, handles[0]),),
    )


def normalize_compare(
    handles: list[UploadHandle],
    user_goals: Any,
    store: UploadStore,
) -> AnalysisContext:
    if len(handles) < 2:
        logger.info("Comparison rejected: %d image(s) uploaded", len(handles))
        raise InsufficientImages()
    if len(handles) > 2:
        raise TooManyImages("Please upload exactly 2 images to compare.")
    return AnalysisContext(
        user_goals=_goals(user_goals),
        images=tuple(_image_part(store, h) for h in handles),
    )


def normalize_barcode(body: Any) -> AnalysisContext:
    """
    Build the context for a barcode lookup. Every field is optional; missing
    ones are rendered as sentinels by the prompt, never rejected.
    """
    if not isinstance(body, dict):
        raise InvalidPayload()

    nutriments = body.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}

    product = ProductMetadata(
        name=body.get("product_name"),
        ingredients_text=body.get("ingredients_text"),
        image_url=body.get("image_url"),
        nutrients={key: nutriments.get(key) for key, _, _ in NUTRIENT_FIELDS},
    )
    return AnalysisContext(user_goals=_goals(body.get("userGoals")), product=product)
