"""AI product-image pipeline: background removal followed by model overlay."""

import logging

from pydantic import ValidationError

from ..config import StudioConfig
from ..models import (
    ImageSource,
    ModelRef,
    ProcessingOutcome,
    ProcessingRequest,
    ProcessingResult,
    StageFailed,
    StageSuccess,
)
from ..services import BackgroundRemovalClient, ModelOverlayClient
from ..utils.garment_classifier import classify, classify_gender_preference

logger = logging.getLogger(__name__)

SUCCESS_NARRATIVE = "AI processing completed successfully"
PARTIAL_NARRATIVE = "AI processing partially completed."
FAILURE_NARRATIVE = "AI processing failed. Using original image."


class ProcessingPipeline:
    """Turns an uploaded garment photo into a listing image.

    Flow:
    1. Remove the background (required; failure ends the run)
    2. Classify the category and gender preference
    3. Overlay the cutout onto a fashion model (optional; degrades)
    4. Return one ProcessingResult

    ``process`` never raises.
    """

    def __init__(
        self,
        config: StudioConfig,
        background_removal: BackgroundRemovalClient | None = None,
        model_overlay: ModelOverlayClient | None = None,
    ):
        self.config = config

        # Initialize services
        self.background_removal = background_removal or BackgroundRemovalClient(
            config.background_removal
        )
        self.model_overlay = model_overlay or ModelOverlayClient(config.model_overlay)

    async def process(
        self,
        source_image: ImageSource,
        declared_category: str,
        declared_gender_preference: str = "unisex",
        model_ref: ModelRef | None = None,
    ) -> ProcessingResult:
        """Run the pipeline for one image.

        Args:
            source_image: Uploaded file or image URL
            declared_category: Free-text product category
            declared_gender_preference: e.g. "men", "women", "unisex"
            model_ref: Explicit fashion model, or None for automatic choice

        Returns:
            ProcessingResult; failures are reported in it, never raised
        """
        try:
            request = ProcessingRequest(
                source_image=source_image,
                declared_category=declared_category,
                declared_gender_preference=declared_gender_preference,
                selected_model=model_ref,
            )
        except ValidationError as e:
            logger.warning("Invalid processing request: %s", e)
            return ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                source_image_ref=source_image.reference if isinstance(source_image, ImageSource) else "",
                stage_narrative="Please provide a garment image and category.",
            )
        return await self.run(request)

    async def run(self, request: ProcessingRequest) -> ProcessingResult:
        """Run the pipeline for a prepared request."""
        source_ref = request.source_image.reference

        invalid = request.validation_error()
        if invalid:
            logger.info("Rejected processing request: %s", invalid)
            return ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                source_image_ref=source_ref,
                stage_narrative=invalid,
            )

        try:
            return await self._run_stages(request, source_ref)
        except Exception:
            logger.exception("Complete AI processing error")
            return ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                source_image_ref=source_ref,
                stage_narrative=FAILURE_NARRATIVE,
            )

    async def check_services(self) -> dict[str, bool]:
        """Reachability of both stage services."""
        return {
            "background_removal": await self.background_removal.check_connection(),
            "model_overlay": await self.model_overlay.check_connection(),
        }

    async def close(self):
        await self.background_removal.close()
        await self.model_overlay.close()

    async def _run_stages(self, request: ProcessingRequest, source_ref: str) -> ProcessingResult:
        logger.info("Starting AI processing pipeline (category=%r)", request.declared_category)

        # Step 1: Remove background
        cutout = await self.background_removal.remove_background(request.source_image)
        if isinstance(cutout, StageFailed):
            return ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                source_image_ref=source_ref,
                stage_narrative=cutout.message,
            )

        # Step 2: Classify
        garment_type = classify(request.declared_category)
        gender = classify_gender_preference(request.declared_gender_preference)
        logger.debug("Classified as %s / %s", garment_type.value, gender.value)

        # Step 3: Overlay (never fails, at worst hands the cutout back)
        overlay = await self.model_overlay.apply_model_overlay(
            cutout.image_ref,
            garment_type=garment_type,
            gender=gender,
            model_ref=request.selected_model,
        )

        if isinstance(overlay, StageSuccess):
            outcome = ProcessingOutcome.SUCCESS
            final_ref = overlay.image_ref
            narrative = SUCCESS_NARRATIVE
        else:
            outcome = ProcessingOutcome.DEGRADED
            final_ref = cutout.image_ref
            narrative = f"{PARTIAL_NARRATIVE} {overlay.message}"

        logger.info("AI processing finished: %s", outcome.value)
        return ProcessingResult(
            outcome=outcome,
            final_image_ref=final_ref,
            source_image_ref=source_ref,
            stage_narrative=narrative,
        )
