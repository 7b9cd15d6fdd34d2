"""Practice engines: SM-2 scheduler, flip card and pairing round."""
from .scheduler import (
    ScheduleResult,
    schedule,
    status,
    progress,
    review,
    reset_progress,
    ONE_MINUTE_MS,
    SIX_MINUTES_MS,
    ONE_DAY_MS,
)
from .card import CardStateMachine, CardFace, PromptSide, SwipeDirection
from .pairing import PairingRound, PairingCard, PairingSide, SelectOutcome

__all__ = [
    "ScheduleResult",
    "schedule",
    "status",
    "progress",
    "review",
    "reset_progress",
    "ONE_MINUTE_MS",
    "SIX_MINUTES_MS",
    "ONE_DAY_MS",
    "CardStateMachine",
    "CardFace",
    "PromptSide",
    "SwipeDirection",
    "PairingRound",
    "PairingCard",
    "PairingSide",
    "SelectOutcome",
]
