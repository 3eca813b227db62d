"""Pipeline request, stage and result models."""

import base64
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field, computed_field, model_validator

from .fashion_model import ModelRef


class ImageSource(BaseModel):
    """An uploaded image, either raw file bytes or a remote URL."""

    kind: Literal["file", "url"]
    data: bytes | None = None
    url: str | None = None
    filename: str = "garment.png"
    content_type: str = "image/png"

    @model_validator(mode="after")
    def check_payload(self) -> "ImageSource":
        if self.kind == "file" and self.data is None:
            raise ValueError("file image sources need data")
        if self.kind == "url" and self.url is None:
            raise ValueError("url image sources need a url")
        return self

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str = "garment.png",
        content_type: str = "image/png",
    ) -> "ImageSource":
        return cls(kind="file", data=data, filename=filename, content_type=content_type)

    @classmethod
    def from_url(cls, url: str) -> "ImageSource":
        return cls(kind="url", url=url)

    @property
    def is_empty(self) -> bool:
        if self.kind == "file":
            return not self.data
        return not (self.url and self.url.strip())

    @property
    def reference(self) -> str:
        """URI for this image. File sources become a data URL."""
        if self.kind == "url":
            return self.url or ""
        encoded = base64.b64encode(self.data or b"").decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class ProcessingRequest(BaseModel):
    """One user action asking for a processed product image."""

    source_image: ImageSource
    declared_category: str
    declared_gender_preference: str = "unisex"
    selected_model: ModelRef | None = None

    def validation_error(self) -> str | None:
        """Message describing why the request cannot run, if any."""
        if self.source_image.is_empty:
            return "Please upload a garment image before generating."
        if not self.declared_category.strip():
            return "Please select a garment category before generating."
        return None


# Stage results

class StageSuccess(BaseModel):
    """The stage produced a new image."""
    status: Literal["success"] = "success"
    image_ref: str
    message: str


class StageDegraded(BaseModel):
    """The stage could not run and passed its input image through."""
    status: Literal["degraded"] = "degraded"
    image_ref: str
    message: str
    reason: Literal["invalid_response", "rejected", "unreachable", "passthrough"]


class StageFailed(BaseModel):
    """The stage failed; the original image is kept untouched."""
    status: Literal["failed"] = "failed"
    original_image_ref: str
    message: str


StageResult = Union[StageSuccess, StageDegraded, StageFailed]


class ProcessingOutcome(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class ProcessingResult(BaseModel):
    """Aggregated outcome of one pipeline run."""

    outcome: ProcessingOutcome
    final_image_ref: str | None = None
    source_image_ref: str
    stage_narrative: str = Field(description="Message ready for display")

    @computed_field
    @property
    def succeeded(self) -> bool:
        """True whenever background removal succeeded."""
        return self.outcome != ProcessingOutcome.FAILED

    @model_validator(mode="after")
    def check_final_image(self) -> "ProcessingResult":
        if self.outcome != ProcessingOutcome.FAILED and not self.final_image_ref:
            raise ValueError("successful results need a final image")
        return self
