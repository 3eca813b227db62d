"""Client for the background-removal (cutout) service."""

import logging

import httpx

from ..config import BackgroundRemovalConfig
from ..models.processing import ImageSource, StageFailed, StageResult, StageSuccess
from .base import ServiceClient, is_json_response

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Background removal failed"


class BackgroundRemovalClient(ServiceClient):
    """Sends one image to the cutout service and reports the outcome.

    Every failure becomes a ``StageFailed`` carrying the original image
    reference; nothing is raised to the caller for transport or parsing
    problems.
    """

    def __init__(
        self,
        config: BackgroundRemovalConfig,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config.base_url, config.timeout, client=client)
        self.config = config

    async def remove_background(self, image: ImageSource) -> StageResult:
        """Remove the background from an uploaded file or an image URL."""
        original_ref = image.reference
        logger.info("Requesting background removal (%s source)", image.kind)

        try:
            response = await self._send(image)

            if not is_json_response(response):
                return self._failed(original_ref, "Server error - invalid response format")

            body = response.json()
            if not isinstance(body, dict):
                return self._failed(original_ref, "Server error - invalid response format")

            if response.is_error or not body.get("success"):
                return self._failed(original_ref, body.get("message") or DEFAULT_FAILURE_MESSAGE)

            processed_url = body.get("processedImageUrl")
            if not processed_url:
                return self._failed(original_ref, "Background removal returned no image")

        except httpx.HTTPError as e:
            return self._failed(original_ref, f"{DEFAULT_FAILURE_MESSAGE}: {e}")
        except ValueError as e:
            # Body claimed to be JSON but did not parse
            return self._failed(original_ref, f"Server error - invalid response format ({e})")

        logger.info("Background removed: %s", processed_url)
        return StageSuccess(image_ref=processed_url, message="Background removed successfully")

    async def _send(self, image: ImageSource) -> httpx.Response:
        if image.kind == "file":
            return await self.client.post(
                self.config.url,
                data={"type": "file"},
                files={"image": (image.filename, image.data or b"", image.content_type)},
            )
        return await self.client.post(
            self.config.url,
            data={"type": "url", "image_url": image.url or ""},
        )

    def _failed(self, original_ref: str, message: str) -> StageFailed:
        logger.warning("Background removal failed: %s", message)
        return StageFailed(original_image_ref=original_ref, message=message)
