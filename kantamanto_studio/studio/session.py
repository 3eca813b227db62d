"""Studio session state."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from ..models import DraftProduct, ImageSource, ModelRef, ProcessingOutcome, ProcessingResult, StudioCategory


class StudioState(str, Enum):
    IDLE = "idle"
    IMAGE_SELECTED = "image_selected"
    CATEGORY_SELECTED = "category_selected"
    MODEL_SELECTED = "model_selected"
    AUTO_MODEL = "auto_model"
    GENERATING = "generating"
    RESOLVED = "resolved"
    PERSISTING = "persisting"
    PERSIST_FAILED = "persist_failed"
    DONE = "done"


# States in which the inputs can still be edited
SELECTION_STATES = frozenset({
    StudioState.IDLE,
    StudioState.IMAGE_SELECTED,
    StudioState.CATEGORY_SELECTED,
    StudioState.MODEL_SELECTED,
    StudioState.AUTO_MODEL,
})

# States after a result exists; a model change is recorded (and patched in DONE)
RESULT_STATES = frozenset({
    StudioState.RESOLVED,
    StudioState.PERSISTING,
    StudioState.PERSIST_FAILED,
    StudioState.DONE,
})


class TransitionResult(BaseModel):
    """What happened when a transition was attempted."""

    accepted: bool
    state: StudioState
    message: str | None = None


class StudioSession(BaseModel):
    """Everything one studio run holds in memory.

    Mutated only by StudioSessionController.
    """

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    state: StudioState = StudioState.IDLE

    # Inputs
    image: ImageSource | None = None
    category: StudioCategory | None = None
    gender: str = "unisex"
    selected_model: ModelRef | None = None
    auto_model: bool = False

    # Generation
    epoch: int = 0
    result: ProcessingResult | None = None
    display_image_ref: str | None = None

    # Persistence
    draft: DraftProduct | None = None
    patch_seq: int = 0
    patch_pending: bool = False

    # User-facing
    message: str | None = None
    error: str | None = None

    started_at: datetime = Field(default_factory=datetime.now)

    @computed_field
    @property
    def outcome(self) -> ProcessingOutcome | None:
        """Outcome of the resolved result, if any."""
        return self.result.outcome if self.result else None

    @computed_field
    @property
    def is_generating(self) -> bool:
        """True while the UI should block further input."""
        return self.state == StudioState.GENERATING

    def selection_state(self) -> StudioState:
        """The pre-generation state implied by the current inputs."""
        if self.image is None:
            return StudioState.IDLE
        if self.category is None:
            return StudioState.IMAGE_SELECTED
        if self.selected_model is not None:
            return StudioState.MODEL_SELECTED
        if self.auto_model:
            return StudioState.AUTO_MODEL
        return StudioState.CATEGORY_SELECTED
