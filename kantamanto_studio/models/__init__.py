"""Data models for the AI Studio pipeline."""

from .garment import GarmentType, OverlayGender, StudioCategory
from .fashion_model import ModelRef
from .processing import (
    ImageSource,
    ProcessingRequest,
    ProcessingOutcome,
    ProcessingResult,
    StageSuccess,
    StageDegraded,
    StageFailed,
    StageResult,
)
from .product import DraftFields, DraftProduct

__all__ = [
    "GarmentType",
    "OverlayGender",
    "StudioCategory",
    "ModelRef",
    "ImageSource",
    "ProcessingRequest",
    "ProcessingOutcome",
    "ProcessingResult",
    "StageSuccess",
    "StageDegraded",
    "StageFailed",
    "StageResult",
    "DraftFields",
    "DraftProduct",
]
