"""Fashion-model catalog entries."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModelRef(BaseModel):
    """A curated fashion model from the external catalog.

    Read-only from the pipeline's point of view: creation, curation and
    usage counting belong to the catalog service.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str
    name: str
    gender: str = Field(default="unisex", description="men, women or unisex")
    body_type: str = "average"
    ethnicity: str = "diverse"
    category: str = "general"
    image_url: str
    thumbnail_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    is_active: bool = True
    usage_count: int = 0

    def to_overlay_descriptor(self) -> dict[str, str]:
        """Denormalized descriptor sent along with an overlay request."""
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "gender": self.gender,
            "bodyType": self.body_type,
            "ethnicity": self.ethnicity,
            "category": self.category,
        }
