"""
SM-2 Scheduler Tests.
Tests interval steps, easiness updates, status and progress derivation.
"""
import pytest

from wordboost.core.errors import InvalidArgumentError
from wordboost.core.word import Word, WordStatus
from wordboost.engines import scheduler
from wordboost.engines.scheduler import (
    ONE_DAY_MS,
    ONE_MINUTE_MS,
    SIX_MINUTES_MS,
    THREE_WEEKS_MS,
    schedule,
)


class TestScheduleSteps:
    """Test the interval ladder for passing answers."""

    def test_first_success_is_one_minute(self):
        """A fresh word answered with quality 4 moves to the 1 minute step."""
        result = schedule(0, 2.5, 0, 4)
        assert result.repetition == 1
        assert result.easiness == pytest.approx(2.5)
        assert result.interval == 60000

    def test_second_success_is_six_minutes(self):
        """Second success moves to the 6 minute step."""
        result = schedule(1, 2.5, ONE_MINUTE_MS, 5)
        assert result.repetition == 2
        assert result.interval == SIX_MINUTES_MS

    def test_third_success_graduates_to_one_day(self):
        """Leaving the learning steps gives a one day interval."""
        result = schedule(2, 2.5, SIX_MINUTES_MS, 4)
        assert result.repetition == 3
        assert result.interval == ONE_DAY_MS

    def test_review_interval_grows_by_easiness(self):
        """After graduation the interval is multiplied by the new easiness."""
        result = schedule(3, 2.5, ONE_DAY_MS, 5)
        assert result.easiness == pytest.approx(2.6)
        assert result.interval == int(ONE_DAY_MS * result.easiness)

    def test_failure_resets_to_first_step(self):
        """A failed review of a long interval word restarts it."""
        result = schedule(5, 2.0, 864000000, 0)
        assert result.repetition == 0
        assert result.interval == 60000
        assert result.easiness == pytest.approx(1.3)


class TestEasiness:
    """Test easiness factor updates."""

    def test_quality_five_adds_a_tenth(self):
        assert scheduler.next_easiness(2.5, 5) == pytest.approx(2.6)

    def test_quality_four_keeps_easiness(self):
        assert scheduler.next_easiness(2.5, 4) == pytest.approx(2.5)

    def test_quality_three_lowers_easiness(self):
        assert scheduler.next_easiness(2.5, 3) == pytest.approx(2.36)

    def test_easiness_never_below_floor(self):
        """Every quality keeps easiness at or above 1.3."""
        for easiness in (1.3, 1.5, 2.0, 2.5, 3.0):
            for quality in range(6):
                assert scheduler.next_easiness(easiness, quality) >= 1.3


class TestScheduleProperties:
    """Test invariants over a grid of inputs."""

    STATES = [
        (0, 2.5, 0),
        (1, 2.5, ONE_MINUTE_MS),
        (2, 2.36, SIX_MINUTES_MS),
        (3, 1.3, ONE_DAY_MS),
        (7, 2.8, 90 * ONE_DAY_MS),
    ]

    def test_interval_at_least_one_minute(self):
        for repetition, easiness, interval in self.STATES:
            for quality in range(6):
                assert schedule(repetition, easiness, interval, quality).interval >= ONE_MINUTE_MS

    def test_failing_quality_resets_repetition(self):
        for repetition, easiness, interval in self.STATES:
            for quality in range(3):
                result = schedule(repetition, easiness, interval, quality)
                assert result.repetition == 0
                assert result.interval == ONE_MINUTE_MS

    def test_passing_quality_increments_repetition(self):
        for repetition, easiness, interval in self.STATES:
            for quality in range(3, 6):
                assert schedule(repetition, easiness, interval, quality).repetition == repetition + 1

    def test_graduated_interval_strictly_grows(self):
        for repetition, easiness, interval in self.STATES:
            if repetition < 2 or interval <= SIX_MINUTES_MS:
                continue
            for quality in range(3, 6):
                assert schedule(repetition, easiness, interval, quality).interval > interval


class TestScheduleValidation:
    """Test rejection of out-of-range input."""

    @pytest.mark.parametrize("quality", [-1, 6, 10])
    def test_quality_out_of_range(self, quality):
        with pytest.raises(InvalidArgumentError) as exc:
            schedule(0, 2.5, 0, quality)
        assert exc.value.field == "quality"

    def test_negative_interval(self):
        with pytest.raises(InvalidArgumentError):
            schedule(0, 2.5, -1, 4)

    def test_negative_repetition(self):
        with pytest.raises(InvalidArgumentError):
            schedule(-1, 2.5, 0, 4)

    def test_easiness_below_floor(self):
        with pytest.raises(InvalidArgumentError):
            schedule(0, 1.2, 0, 4)


class TestStatus:
    """Test status derivation from repetition and interval."""

    def test_fresh_word_is_new(self):
        assert scheduler.status(0, 0) == WordStatus.NEW

    def test_failed_word_is_new(self):
        """A word sent back to the first step counts as new again."""
        assert scheduler.status(0, ONE_MINUTE_MS) == WordStatus.NEW

    def test_no_repetitions_is_new_at_any_interval(self):
        """Learning and later tiers need at least one success."""
        assert scheduler.status(0, 3 * ONE_MINUTE_MS) == WordStatus.NEW
        assert scheduler.status(0, 2 * ONE_DAY_MS) == WordStatus.NEW
        assert scheduler.status(0, THREE_WEEKS_MS + 1) == WordStatus.NEW

    def test_learning_steps(self):
        assert scheduler.status(1, ONE_MINUTE_MS) == WordStatus.LEARNING
        assert scheduler.status(2, SIX_MINUTES_MS) == WordStatus.LEARNING

    def test_review(self):
        assert scheduler.status(3, ONE_DAY_MS) == WordStatus.REVIEW
        assert scheduler.status(6, THREE_WEEKS_MS) == WordStatus.REVIEW

    def test_mastered_after_three_weeks(self):
        assert scheduler.status(7, THREE_WEEKS_MS + 1) == WordStatus.MASTERED

    def test_word_status_property(self):
        word = Word(id="w1", text="apple", translation="яблуко", repetition=3, interval=ONE_DAY_MS)
        assert word.status == WordStatus.REVIEW


class TestProgress:
    """Test the progress ladder used by progress indicators."""

    def test_ladder(self):
        assert scheduler.progress(0, 0) == 0.1
        assert scheduler.progress(1, ONE_MINUTE_MS) == 0.2
        assert scheduler.progress(2, SIX_MINUTES_MS) == 0.4
        assert scheduler.progress(3, ONE_DAY_MS) == 0.6
        assert scheduler.progress(4, 3 * ONE_DAY_MS) == 0.7
        assert scheduler.progress(5, 20 * ONE_DAY_MS) == 0.85
        assert scheduler.progress(6, 60 * ONE_DAY_MS) == 1.0

    def test_progress_never_decreases_along_successes(self):
        """Following a run of perfect answers, progress only goes up."""
        repetition, easiness, interval = 0, 2.5, 0
        last = scheduler.progress(repetition, interval)
        for _ in range(8):
            repetition, easiness, interval = schedule(repetition, easiness, interval, 5)
            current = scheduler.progress(repetition, interval)
            assert current >= last
            last = current
        assert last == 1.0


class TestReview:
    """Test applying a review to a Word."""

    def test_review_sets_timestamps(self):
        word = Word(id="w1", text="apple", translation="яблуко")
        updated = scheduler.review(word, 4, at_ms=1000)
        assert updated.repetition == 1
        assert updated.last_reviewed == 1000
        assert updated.next_review == 1000 + ONE_MINUTE_MS
        assert updated.text == "apple"

    def test_review_does_not_touch_original(self):
        word = Word(id="w1", text="apple", translation="яблуко")
        scheduler.review(word, 5, at_ms=1000)
        assert word.repetition == 0
        assert word.next_review == 0

    def test_reset_progress(self):
        word = Word(id="w1", text="apple", translation="яблуко",
                    repetition=4, easiness=1.9, interval=ONE_DAY_MS, next_review=5000)
        reset = scheduler.reset_progress(word)
        assert reset.repetition == 0
        assert reset.easiness == 2.5
        assert reset.interval == 0
        assert reset.next_review == 0
        assert reset.status == WordStatus.NEW


class TestWordValidation:
    """Test Word construction invariants."""

    def test_repetitions_without_interval_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Word(id="w1", text="apple", translation="яблуко", repetition=2, interval=0)

    def test_low_easiness_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Word(id="w1", text="apple", translation="яблуко", easiness=1.0)

    def test_is_due(self):
        word = Word(id="w1", text="apple", translation="яблуко", next_review=500)
        assert word.is_due(500)
        assert not word.is_due(499)
