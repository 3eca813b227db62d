"""Utility helpers for the AI Studio pipeline."""

from .garment_classifier import classify, classify_gender_preference
from .images import InvalidImageError, decode_data_url, ensure_previewable, read_preview

__all__ = [
    "classify",
    "classify_gender_preference",
    "InvalidImageError",
    "decode_data_url",
    "ensure_previewable",
    "read_preview",
]
