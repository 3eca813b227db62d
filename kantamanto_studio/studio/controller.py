"""State machine driving an AI Studio session from upload to draft listing."""

import logging
from typing import Callable

from ..models import (
    DraftFields,
    ImageSource,
    ModelRef,
    ProcessingOutcome,
    ProcessingResult,
    StudioCategory,
)
from ..pipeline import ProcessingPipeline
from ..services import ProductStorageClient, ProductStorageError
from ..utils.images import InvalidImageError, read_preview
from .session import (
    RESULT_STATES,
    SELECTION_STATES,
    StudioSession,
    StudioState,
    TransitionResult,
)

logger = logging.getLogger(__name__)

GENDERS = ("men", "women", "unisex")


class StudioSessionController:
    """Owns one StudioSession and routes every change through a transition.

    Transitions return a TransitionResult instead of raising, so whatever
    binds the session (a UI, an API handler) always gets a displayable
    message and a well-defined state.

    Results are tagged with the session epoch when generation starts; a
    result that comes back after ``run_again`` moved the epoch on is dropped.
    Model patches carry a sequence number in the same way, so only the most
    recent selection can update the draft preview.
    """

    def __init__(
        self,
        pipeline: ProcessingPipeline,
        products: ProductStorageClient,
        seller_id: str,
        image_reader: Callable[[ImageSource], None] = read_preview,
        session: StudioSession | None = None,
    ):
        self.pipeline = pipeline
        self.products = products
        self.seller_id = seller_id
        self.image_reader = image_reader
        self.session = session or StudioSession()

    @property
    def state(self) -> StudioState:
        return self.session.state

    # Selection

    def select_image(self, image: ImageSource) -> TransitionResult:
        """Idle -> ImageSelected, once the upload decodes to a previewable bitmap."""
        if self.state not in SELECTION_STATES:
            return self._reject(f"Cannot change the image while {self.state.value}.")

        try:
            self.image_reader(image)
        except InvalidImageError as e:
            logger.info("Rejected upload: %s", e)
            return self._reject("Please upload a valid image file.")

        self.session.image = image
        return self._settle_selection()

    def remove_image(self) -> TransitionResult:
        if self.state not in SELECTION_STATES:
            return self._reject(f"Cannot change the image while {self.state.value}.")
        self.session.image = None
        return self._settle_selection()

    def select_category(self, category: StudioCategory | str) -> TransitionResult:
        """ImageSelected -> CategorySelected."""
        if self.state not in SELECTION_STATES:
            return self._reject(f"Cannot change the category while {self.state.value}.")

        resolved = _parse_category(category)
        if resolved is None:
            return self._reject("Please select Top, Bottom or Full-body.")

        self.session.category = resolved
        return self._settle_selection()

    def select_gender(self, gender: str) -> TransitionResult:
        if self.state not in SELECTION_STATES:
            return self._reject(f"Cannot change the gender while {self.state.value}.")
        if gender.lower() not in GENDERS:
            return self._reject("Please choose men, women or unisex.")
        self.session.gender = gender.lower()
        return self._settle_selection()

    async def select_model(self, model_ref: ModelRef | None) -> TransitionResult:
        """CategorySelected -> ModelSelected (or AutoModel when None).

        Once a draft exists the new model is patched onto it straight away.
        """
        s = self.session
        if self.state not in SELECTION_STATES and self.state not in RESULT_STATES:
            return self._reject("Please wait for generation to finish.")

        s.selected_model = model_ref
        s.auto_model = model_ref is None

        if self.state in SELECTION_STATES:
            return self._settle_selection()

        if self.state == StudioState.DONE:
            if model_ref is not None:
                await self._patch_model()
            else:
                # No model to attach; supersede in-flight or failed patches
                s.patch_seq += 1
                s.patch_pending = False
                s.error = None
            return TransitionResult(accepted=True, state=self.state, message=s.error or s.message)

        return TransitionResult(accepted=True, state=self.state, message=s.message)

    # Generation

    async def generate(self) -> TransitionResult:
        """CategorySelected/ModelSelected/AutoModel -> Generating -> Resolved."""
        s = self.session
        if self.state == StudioState.GENERATING:
            return self._reject("Generation already in progress.")

        retry = self.state == StudioState.RESOLVED and s.outcome == ProcessingOutcome.FAILED
        if self.state not in SELECTION_STATES and not retry:
            return self._reject("Start a new run to generate another image.")
        if s.image is None:
            return self._reject("Please upload a garment image.")
        if s.category is None:
            return self._reject("Please select a garment category.")

        s.epoch += 1
        epoch = s.epoch
        s.state = StudioState.GENERATING
        s.message = "Generating..."
        s.error = None
        logger.info("Session %s: generating (epoch %d)", s.session_id, epoch)

        try:
            result = await self.pipeline.process(
                s.image,
                s.category.product_category,
                s.gender,
                s.selected_model,
            )
        except Exception:
            logger.exception("Pipeline raised for session %s", s.session_id)
            result = ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                source_image_ref=s.image.reference,
                stage_narrative="Something went wrong. Please try again.",
            )

        if epoch != s.epoch:
            logger.info("Session %s: dropping stale result from epoch %d", s.session_id, epoch)
            return TransitionResult(accepted=False, state=self.state, message="Discarded an outdated result.")

        s.result = result
        s.display_image_ref = result.final_image_ref
        s.state = StudioState.RESOLVED
        s.message = result.stage_narrative
        return TransitionResult(accepted=True, state=self.state, message=s.message)

    # Persistence

    async def save_draft(self) -> TransitionResult:
        """Resolved -> Persisting -> Done."""
        s = self.session
        keepable = self.state == StudioState.RESOLVED and s.result is not None and s.result.succeeded
        if not (keepable or self.state == StudioState.PERSIST_FAILED):
            return self._reject("Generate an image before saving a draft.")

        epoch = s.epoch
        s.state = StudioState.PERSISTING
        s.error = None

        try:
            draft = await self.products.create_draft(self._draft_fields())
        except ProductStorageError as e:
            if epoch != s.epoch:
                return TransitionResult(accepted=False, state=self.state, message=s.message)
            logger.warning("Session %s: draft creation failed: %s", s.session_id, e)
            s.state = StudioState.PERSIST_FAILED
            s.error = str(e)
            s.message = "Failed to save product draft. Please try again."
            return TransitionResult(accepted=False, state=self.state, message=s.message)

        if epoch != s.epoch:
            # Run again was pressed meanwhile; the draft stays on the backend
            return TransitionResult(accepted=False, state=self.state, message=s.message)

        s.draft = draft
        s.state = StudioState.DONE
        s.message = "Product has been saved to your seller dashboard."

        if s.selected_model is not None:
            await self._patch_model()

        return TransitionResult(accepted=True, state=self.state, message=s.error or s.message)

    async def retry_persistence(self) -> TransitionResult:
        """Retry whichever persistence step failed, without regenerating."""
        if self.state == StudioState.PERSIST_FAILED:
            return await self.save_draft()
        if self.state == StudioState.DONE and self.session.patch_pending:
            await self._patch_model()
            return TransitionResult(
                accepted=not self.session.patch_pending,
                state=self.state,
                message=self.session.error or self.session.message,
            )
        return self._reject("Nothing to retry.")

    def run_again(self) -> TransitionResult:
        """Any state -> Idle. Persisted drafts are left alone."""
        s = self.session
        s.epoch += 1
        s.patch_seq += 1
        s.image = None
        s.result = None
        s.display_image_ref = None
        s.draft = None
        s.patch_pending = False
        s.error = None
        s.message = None
        s.state = StudioState.IDLE
        logger.info("Session %s: run again (epoch %d)", s.session_id, s.epoch)
        return TransitionResult(accepted=True, state=self.state)

    # Internals

    async def _patch_model(self) -> None:
        s = self.session
        if s.draft is None or s.selected_model is None or s.result is None:
            return

        s.patch_seq += 1
        seq = s.patch_seq
        draft_id = s.draft.id
        model_id = s.selected_model.id

        try:
            product = await self.products.patch_model(draft_id, model_id, s.result.final_image_ref)
        except ProductStorageError as e:
            if seq == s.patch_seq:
                logger.warning("Session %s: model patch failed: %s", s.session_id, e)
                s.patch_pending = True
                s.error = str(e)
            return

        if seq != s.patch_seq:
            logger.debug("Session %s: ignoring superseded patch %d", s.session_id, seq)
            return

        s.draft = product
        s.patch_pending = False
        s.error = None
        if product.ai_preview_url:
            s.display_image_ref = product.ai_preview_url

    def _draft_fields(self) -> DraftFields:
        s = self.session
        category = s.category or StudioCategory.TOP
        source = s.image
        final_image = s.result.final_image_ref if s.result else None
        # Without a file part the backend takes the listing image from originalImage
        if source is not None and source.kind == "url":
            original_image = source.url
        else:
            original_image = final_image
        return DraftFields(
            seller_id=self.seller_id,
            title=f"{category.value} Garment",
            description=(
                f"Beautiful {category.value.lower()} perfect for any occasion. "
                "High-quality material with excellent fit."
            ),
            category=category.product_category,
            gender=s.gender,
            original_image=original_image,
            processed_image=final_image,
        )

    def _settle_selection(self) -> TransitionResult:
        self.session.state = self.session.selection_state()
        self.session.message = None
        return TransitionResult(accepted=True, state=self.state)

    def _reject(self, message: str) -> TransitionResult:
        self.session.message = message
        return TransitionResult(accepted=False, state=self.state, message=message)


def _parse_category(category: StudioCategory | str) -> StudioCategory | None:
    if isinstance(category, StudioCategory):
        return category
    for option in StudioCategory:
        if option.value.lower() == str(category).strip().lower():
            return option
    return None
