"""AI Studio session state machine."""

from .session import StudioSession, StudioState, TransitionResult
from .controller import StudioSessionController

__all__ = [
    "StudioSession",
    "StudioState",
    "TransitionResult",
    "StudioSessionController",
]
