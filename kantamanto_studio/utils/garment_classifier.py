"""Map free-text product categories to try-on garment classes."""

import re

from ..models.garment import GarmentType, OverlayGender


# Checked in order, first match wins: "Dress Shirt" is a one-piece.
GARMENT_KEYWORDS: list[tuple[GarmentType, tuple[str, ...]]] = [
    (GarmentType.ONE_PIECES, ("dress", "jumpsuit", "romper")),
    (GarmentType.TOPS, (
        "shirt", "top", "blouse", "t-shirt", "tank",
        "sweater", "hoodie", "jacket", "coat", "blazer",
    )),
    (GarmentType.BOTTOMS, ("pants", "trouser", "jeans", "shorts", "skirt", "legging")),
]

# Whole words only, so "women" never reads as "men".
GENDER_PATTERNS: list[tuple[OverlayGender, re.Pattern[str]]] = [
    (OverlayGender.MALE, re.compile(r"\b(men|male)\b")),
    (OverlayGender.FEMALE, re.compile(r"\b(women|female)\b")),
]


def classify(category_text: str | None) -> GarmentType:
    """Classify a product category string.

    Case-insensitive substring match against the keyword sets above.
    Returns ``GarmentType.AUTO`` when nothing matches.
    """
    if not category_text:
        return GarmentType.AUTO

    text = category_text.lower()
    for garment_type, keywords in GARMENT_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return garment_type

    return GarmentType.AUTO


def classify_gender_preference(gender_text: str | None) -> OverlayGender:
    """Classify a gender preference string; anything unrecognised is unisex."""
    if not gender_text:
        return OverlayGender.UNISEX

    text = gender_text.lower()
    for gender, pattern in GENDER_PATTERNS:
        if pattern.search(text):
            return gender

    return OverlayGender.UNISEX
