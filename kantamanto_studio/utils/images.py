"""Helpers for decoding and checking uploaded images."""

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

from ..models.processing import ImageSource


class InvalidImageError(ValueError):
    """Raised when uploaded bytes are not a usable image."""


def decode_data_url(data: str) -> tuple[bytes, str]:
    """Decode a base64 data URL (or bare base64) into bytes and a content type."""
    content_type = "image/png"
    if data.startswith("data:"):
        # e.g. "data:image/png;base64,...."
        if "," not in data:
            raise InvalidImageError("Image data URL has no payload")
        header, encoded = data.split(",", 1)
        content_type = header[5:].split(";", 1)[0] or content_type
    else:
        encoded = data

    try:
        return base64.b64decode(encoded, validate=True), content_type
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Image is not valid base64: {e}") from e


def ensure_previewable(data: bytes) -> tuple[int, int]:
    """Check that bytes decode to a bitmap and return its size."""
    if not data:
        raise InvalidImageError("Image is empty")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
        # verify() leaves the image unusable, reopen to read the size
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError(f"Could not read image: {e}") from e


def read_preview(image: ImageSource) -> None:
    """Default image reader used by the studio before accepting an upload.

    URL sources are accepted as-is; the remote service fetches them.
    """
    if image.kind == "file":
        ensure_previewable(image.data or b"")
    elif image.is_empty:
        raise InvalidImageError("Image URL is empty")


def image_source_from_base64(data: str, filename: str = "garment.png") -> ImageSource:
    """Build a file image source from a base64 payload."""
    raw_bytes, content_type = decode_data_url(data)
    ensure_previewable(raw_bytes)
    return ImageSource.from_bytes(raw_bytes, filename=filename, content_type=content_type)
