"""
SM-2 Spaced Repetition Scheduler

The SM-2 algorithm adjusts review intervals based on recall quality.
Quality ratings:
  0 - Complete blackout
  1 - Incorrect, remembered upon seeing answer
  2 - Incorrect, but easy to recall once seen
  3 - Correct with serious difficulty
  4 - Correct with some hesitation
  5 - Perfect recall

Intervals are in milliseconds. The first two successes are short learning
steps (1 and 6 minutes); the step after them graduates the word to a one
day interval, and from there the interval grows by the easiness factor.
"""
import time
from typing import NamedTuple

from ..core.errors import InvalidArgumentError
from ..core.word import DEFAULT_EASINESS, MIN_EASINESS, Word, WordStatus

ONE_MINUTE_MS = 60 * 1000
SIX_MINUTES_MS = 6 * ONE_MINUTE_MS
ONE_DAY_MS = 24 * 60 * ONE_MINUTE_MS
ONE_WEEK_MS = 7 * ONE_DAY_MS
THREE_WEEKS_MS = 21 * ONE_DAY_MS
ONE_MONTH_MS = 30 * ONE_DAY_MS

PASSING_QUALITY = 3


class ScheduleResult(NamedTuple):
    """New SM-2 state after one review."""
    repetition: int
    easiness: float
    interval: int


def _validate(repetition: int, easiness: float, interval: int, quality: int):
    if not isinstance(quality, int) or not 0 <= quality <= 5:
        raise InvalidArgumentError("Quality must be 0-5", "quality", quality)
    if repetition < 0:
        raise InvalidArgumentError("repetition must be non-negative", "repetition", repetition)
    if interval < 0:
        raise InvalidArgumentError("interval must be non-negative", "interval", interval)
    if easiness < MIN_EASINESS:
        raise InvalidArgumentError(f"easiness must be >= {MIN_EASINESS}", "easiness", easiness)


def next_easiness(easiness: float, quality: int) -> float:
    """Easiness factor after a review, never below 1.3."""
    return max(MIN_EASINESS, easiness + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)))


def schedule(old_repetition: int, old_easiness: float, old_interval: int, quality: int) -> ScheduleResult:
    """
    SM-2 scheduling step.

    Args:
        old_repetition: Consecutive successful reviews so far
        old_easiness: Current easiness factor (min 1.3)
        old_interval: Current interval in milliseconds
        quality: Rating 0-5 (0-2 = failed, 3-5 = passed)

    Returns:
        ScheduleResult(repetition, easiness, interval)

    Raises:
        InvalidArgumentError: If any input is outside its range
    """
    _validate(old_repetition, old_easiness, old_interval, quality)

    new_easiness = next_easiness(old_easiness, quality)

    if quality < PASSING_QUALITY:
        # Failed - back to the first learning step
        return ScheduleResult(0, new_easiness, ONE_MINUTE_MS)

    new_repetition = old_repetition + 1
    if new_repetition == 1:
        new_interval = ONE_MINUTE_MS
    elif new_repetition == 2:
        new_interval = SIX_MINUTES_MS
    elif old_interval <= SIX_MINUTES_MS:
        new_interval = ONE_DAY_MS
    else:
        new_interval = int(old_interval * new_easiness)

    new_interval = max(new_interval, ONE_MINUTE_MS)
    return ScheduleResult(new_repetition, new_easiness, new_interval)


def status(repetition: int, interval: int) -> WordStatus:
    """Derive the learning status of a word from its SM-2 state."""
    if repetition < 0 or interval < 0:
        raise InvalidArgumentError("repetition and interval must be non-negative")
    # No success since the last failure (or ever)
    if repetition == 0:
        return WordStatus.NEW
    if interval <= SIX_MINUTES_MS:
        return WordStatus.LEARNING
    if interval <= THREE_WEEKS_MS:
        return WordStatus.REVIEW
    return WordStatus.MASTERED


def progress(repetition: int, interval: int) -> float:
    """
    Learning progress from 0.0 to 1.0 for progress indicators.

    Walks the learning steps first, then the growth of the interval
    through a day, a week and a month.
    """
    if repetition == 0 and interval <= ONE_MINUTE_MS:
        return 0.1
    if repetition == 1 and interval <= ONE_MINUTE_MS:
        return 0.2
    if repetition == 2 and interval <= SIX_MINUTES_MS:
        return 0.4
    if repetition > 2 and interval <= ONE_DAY_MS:
        return 0.6
    if repetition > 2 and interval <= ONE_WEEK_MS:
        return 0.7
    if repetition > 2 and interval <= ONE_MONTH_MS:
        return 0.85
    return 1.0


def now_ms() -> int:
    return int(time.time() * 1000)


def review(word: Word, quality: int, at_ms: int = None) -> Word:
    """
    Apply one review to a word.

    Args:
        word: Word as it was before the answer
        quality: Rating 0-5
        at_ms: Review time in epoch ms (defaults to now)

    Returns:
        Updated word with new SM-2 state and review timestamps
    """
    result = schedule(word.repetition, word.easiness, word.interval, quality)
    reviewed_at = now_ms() if at_ms is None else at_ms
    return word.updated(
        repetition=result.repetition,
        easiness=result.easiness,
        interval=result.interval,
        last_reviewed=reviewed_at,
        next_review=reviewed_at + result.interval,
    )


def reset_progress(word: Word) -> Word:
    """Return the word as if it had never been reviewed."""
    return word.updated(
        repetition=0,
        easiness=DEFAULT_EASINESS,
        interval=0,
        last_reviewed=0,
        next_review=0,
    )
