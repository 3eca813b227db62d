"""Garment classification models."""

from enum import Enum


class GarmentType(str, Enum):
    """Coarse garment classes understood by the try-on service."""

    TOPS = "tops"
    BOTTOMS = "bottoms"
    ONE_PIECES = "one-pieces"
    AUTO = "auto"


class OverlayGender(str, Enum):
    """Model gender requested from the try-on service."""

    MALE = "male"
    FEMALE = "female"
    UNISEX = "unisex"


class StudioCategory(str, Enum):
    """Garment categories offered in the studio picker."""

    TOP = "Top"
    BOTTOM = "Bottom"
    FULL_BODY = "Full-body"

    @property
    def product_category(self) -> str:
        """Marketplace listing category a draft is filed under."""
        return _PRODUCT_CATEGORIES[self]


_PRODUCT_CATEGORIES = {
    StudioCategory.TOP: "Shirts",
    StudioCategory.BOTTOM: "Pants",
    StudioCategory.FULL_BODY: "Dresses",
}
