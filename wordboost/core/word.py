"""
Word model shared by the scheduler, the drill engines and the session.
"""
from dataclasses import dataclass, replace
from enum import Enum

from .errors import InvalidArgumentError

MIN_EASINESS = 1.3
DEFAULT_EASINESS = 2.5


class WordStatus(Enum):
    """Learning status, derived from repetition and interval."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


@dataclass(frozen=True)
class Word:
    """
    A vocabulary entry with its SM-2 scheduling state.

    Words are immutable: every review produces a new value through
    `updated()`, so snapshots kept for undo can never be aliased.
    """
    id: str
    text: str
    translation: str
    dictionary_id: str = ""
    repetition: int = 0
    easiness: float = DEFAULT_EASINESS
    interval: int = 0            # milliseconds until next review
    last_reviewed: int = 0       # epoch ms
    next_review: int = 0         # epoch ms

    def __post_init__(self):
        if self.repetition < 0:
            raise InvalidArgumentError("repetition must be non-negative", "repetition", self.repetition)
        if self.interval < 0:
            raise InvalidArgumentError("interval must be non-negative", "interval", self.interval)
        if self.easiness < MIN_EASINESS:
            raise InvalidArgumentError(
                f"easiness must be >= {MIN_EASINESS}", "easiness", self.easiness
            )
        if self.interval == 0 and self.repetition != 0:
            raise InvalidArgumentError(
                "a word with zero interval cannot have repetitions", "repetition", self.repetition
            )

    @property
    def status(self) -> WordStatus:
        # Imported lazily: the scheduler imports this module.
        from ..engines.scheduler import status
        return status(self.repetition, self.interval)

    @property
    def progress(self) -> float:
        from ..engines.scheduler import progress
        return progress(self.repetition, self.interval)

    def is_due(self, now_ms: int) -> bool:
        """True when the next review time has passed."""
        return self.next_review <= now_ms

    def updated(self, **changes) -> "Word":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
