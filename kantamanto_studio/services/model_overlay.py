"""Client for the virtual try-on (model overlay) service."""

import logging

import httpx

from ..config import ModelOverlayConfig
from ..models.fashion_model import ModelRef
from ..models.garment import GarmentType, OverlayGender
from ..models.processing import StageDegraded, StageResult, StageSuccess
from .base import ServiceClient, is_json_response

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = (
    "Background removal completed. Virtual try-on service temporarily unavailable."
)
REJECTED_MESSAGE = (
    "Background removal completed. Virtual try-on temporarily unavailable."
)
UNREACHABLE_MESSAGE = (
    "Background removal completed. Virtual try-on service could not be reached."
)
PASSTHROUGH_MESSAGE = (
    "Background removal completed. Virtual try-on returned no new image."
)


class ModelOverlayClient(ServiceClient):
    """Composites a cutout garment onto a fashion model.

    Try-on is an enhancement: this client never reports failure. When the
    service misbehaves the input image comes back as a ``StageDegraded``
    result with an advisory message.
    """

    def __init__(
        self,
        config: ModelOverlayConfig,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config.base_url, config.timeout, client=client)
        self.config = config

    async def apply_model_overlay(
        self,
        image_ref: str,
        garment_type: GarmentType = GarmentType.AUTO,
        gender: OverlayGender = OverlayGender.UNISEX,
        model_ref: ModelRef | None = None,
    ) -> StageResult:
        """Request a try-on composite for a background-removed image.

        Args:
            image_ref: URL of the background-removed garment
            garment_type: Classified garment type
            gender: Model gender preference
            model_ref: Explicit catalog model, or None to let the service choose

        Returns:
            StageSuccess with the composite, or StageDegraded with ``image_ref``
        """
        payload = {
            "imageUrl": image_ref,
            "garmentType": garment_type.value,
            "modelGender": gender.value,
            "fashionModel": model_ref.to_overlay_descriptor() if model_ref else None,
        }
        logger.info(
            "Requesting model overlay (garment=%s, gender=%s, model=%s)",
            garment_type.value,
            gender.value,
            f"{model_ref.name} ({model_ref.id})" if model_ref else "none",
        )

        try:
            response = await self.client.post(self.config.url, json=payload)

            if not is_json_response(response):
                return self._degraded(image_ref, UNAVAILABLE_MESSAGE, "invalid_response")

            body = response.json()
            if not isinstance(body, dict):
                return self._degraded(image_ref, UNAVAILABLE_MESSAGE, "invalid_response")

            if response.is_error or not body.get("success"):
                return self._degraded(image_ref, body.get("message") or REJECTED_MESSAGE, "rejected")

        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Model overlay error: %s", e)
            return self._degraded(image_ref, UNREACHABLE_MESSAGE, "unreachable")

        processed_url = body.get("processedImageUrl")
        if not processed_url or processed_url == image_ref:
            # Service answered but handed our image back (e.g. no try-on key configured)
            return self._degraded(image_ref, body.get("message") or PASSTHROUGH_MESSAGE, "passthrough")

        logger.info("Virtual try-on completed: %s", processed_url)
        return StageSuccess(image_ref=processed_url, message="Virtual try-on completed successfully")

    def _degraded(self, image_ref: str, message: str, reason: str) -> StageDegraded:
        logger.warning("Model overlay degraded (%s): %s", reason, message)
        return StageDegraded(image_ref=image_ref, message=message, reason=reason)
