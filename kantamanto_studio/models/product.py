"""Draft product models exchanged with the marketplace backend."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DraftFields(BaseModel):
    """Fields sent when creating a draft listing from a studio session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    seller_id: str
    title: str
    description: str
    category: str
    condition: str = "excellent"
    price: str = "0"  # Set by the seller later
    status: str = "draft"
    gender: str | None = None
    original_image: str | None = None
    processed_image: str | None = None


class DraftProduct(BaseModel):
    """A product record as returned by the backend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    title: str | None = None
    description: str | None = None
    category: str | None = None
    price: float | None = None
    status: str = "draft"
    processed_image: str | None = None
    images: list[str] = Field(default_factory=list)
    fashion_model_id: str | None = None
    ai_preview_url: str | None = None
