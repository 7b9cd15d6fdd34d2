"""
Practice Session Mode.
Runs due words through a pairing round and a flip-card drill, batch by batch,
scoring every answer with SM-2 and persisting it before moving on.
"""
import asyncio
import logging
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from ..core.collaborators import DueWordSource, SpeechCollaborator, WordPersistence
from ..core.config import PracticeConfig
from ..core.errors import (
    EmptyUndoError,
    InvalidArgumentError,
    InvalidTransitionError,
    PersistenceError,
)
from ..core.undo import AnswerSource, UndoEntry, UndoStack
from ..core.word import Word
from ..engines import scheduler
from ..engines.card import CardFace, CardStateMachine, PromptSide, SwipeDirection
from ..engines.pairing import PairingRound

logger = logging.getLogger(__name__)


class PhaseKind(Enum):
    """Session phases."""
    LOADING = "loading"
    EMPTY = "empty"
    BATCH_PAIRING = "batch_pairing"
    BATCH_REGULAR = "batch_regular"
    FINISHED = "finished"
    ERROR = "error"


@dataclass(frozen=True)
class SessionPhase:
    """
    Current phase with its payload.

    `batch` is set for BATCH_PAIRING and BATCH_REGULAR, `processed_count`
    for FINISHED and `message` for ERROR.
    """
    kind: PhaseKind
    batch: Tuple[Word, ...] = ()
    processed_count: int = 0
    message: Optional[str] = None

    @classmethod
    def loading(cls) -> "SessionPhase":
        return cls(PhaseKind.LOADING)

    @classmethod
    def empty(cls) -> "SessionPhase":
        return cls(PhaseKind.EMPTY)

    @classmethod
    def pairing(cls, batch: Tuple[Word, ...]) -> "SessionPhase":
        return cls(PhaseKind.BATCH_PAIRING, batch=batch)

    @classmethod
    def regular(cls, batch: Tuple[Word, ...]) -> "SessionPhase":
        return cls(PhaseKind.BATCH_REGULAR, batch=batch)

    @classmethod
    def finished(cls, processed_count: int) -> "SessionPhase":
        return cls(PhaseKind.FINISHED, processed_count=processed_count)

    @classmethod
    def error(cls, message: str) -> "SessionPhase":
        return cls(PhaseKind.ERROR, message=message)


@dataclass(frozen=True)
class SessionState:
    """Snapshot of everything a UI shows."""
    phase: SessionPhase
    current_batch: Tuple[Word, ...]
    current_index: int
    current_word: Optional[Word]
    card_face: CardFace
    prompt_side: PromptSide
    can_undo: bool
    error_message: Optional[str]
    processed_count: int
    busy: bool


UNDO_PHASES = (PhaseKind.BATCH_PAIRING, PhaseKind.BATCH_REGULAR, PhaseKind.FINISHED)


class PracticeSession:
    """
    Practice session orchestrator.

    Features:
    - Live due-word pool, drawn into fixed-size batches
    - Pairing round, then flip-card drill, per batch
    - SM-2 scoring and persistence of every answer
    - Multi-step undo across batches
    - Observable state with change callbacks
    """

    def __init__(
        self,
        source: DueWordSource,
        persistence: WordPersistence,
        speech: SpeechCollaborator,
        config: Optional[PracticeConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = scheduler.now_ms,
    ):
        self.source = source
        self.persistence = persistence
        self.speech = speech
        self.config = config or PracticeConfig()
        self._rng = rng or random.Random()
        self._clock = clock

        self._card = CardStateMachine(
            know_quality=self.config.know_quality,
            dont_know_quality=self.config.dont_know_quality,
            rng=self._rng,
        )
        self._undo = UndoStack(self.config.undo_limit)
        self._lock = asyncio.Lock()

        # Session state
        self._phase = SessionPhase.loading()
        self._pool: List[Word] = []
        self._batch: Tuple[Word, ...] = ()
        self._index = 0
        self._latest: Dict[str, Word] = {}
        self._processed: Counter = Counter()
        self._pairing: Optional[PairingRound] = None
        self._error_message: Optional[str] = None

        # Tasks
        self._source_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._cancelled_by_session: Set[asyncio.Task] = set()
        self._loaded: Optional[asyncio.Event] = None
        self._closed = False

        # Observers
        self._callbacks: List[Callable[[SessionState], None]] = []
        self._last_state: Optional[SessionState] = None

        logger.info(f"PracticeSession initialized (batch_size={self.config.batch_size})")

    # Observable state

    @property
    def state(self) -> SessionState:
        word = self.current_word
        return SessionState(
            phase=self._phase,
            current_batch=self._batch,
            current_index=self._index,
            current_word=word,
            card_face=self._card.face,
            prompt_side=self._card.prompt_side,
            can_undo=self.can_undo,
            error_message=self._error_message,
            processed_count=self.processed_count,
            busy=self._lock.locked(),
        )

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def current_batch(self) -> Tuple[Word, ...]:
        return self._batch

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_word(self) -> Optional[Word]:
        """Word under the drill cursor, in its most recently saved version."""
        if self._phase.kind != PhaseKind.BATCH_REGULAR or not 0 <= self._index < len(self._batch):
            return None
        word = self._batch[self._index]
        return self._latest.get(word.id, word)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo) and not self._lock.locked() and self._phase.kind in UNDO_PHASES

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def processed_count(self) -> int:
        """Distinct words answered in this session."""
        return len(self._processed)

    @property
    def pairing_round(self) -> Optional[PairingRound]:
        return self._pairing

    @property
    def card(self) -> CardStateMachine:
        return self._card

    def subscribe(self, callback: Callable[[SessionState], None]) -> Callable[[], None]:
        """
        Register a state observer.

        The callback receives the current state right away and again after
        every change.

        Returns:
            Function that removes the observer
        """
        self._callbacks.append(callback)
        self._call(callback, self.state)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self):
        state = self.state
        if state == self._last_state:
            return
        self._last_state = state
        for callback in list(self._callbacks):
            self._call(callback, state)

    @staticmethod
    def _call(callback: Callable[[SessionState], None], state: SessionState):
        try:
            callback(state)
        except Exception as e:
            logger.error(f"State callback error: {e}")

    # Lifecycle

    async def start_or_refresh_session(self):
        """
        Start a new session, discarding any previous one.

        Returns once the first due-word snapshot has been handled.
        """
        await self._cancel_work()
        self._closed = False

        self._phase = SessionPhase.loading()
        self._pool = []
        self._batch = ()
        self._index = 0
        self._latest = {}
        self._processed = Counter()
        self._undo.clear()
        self._error_message = None
        self._card.reset()
        self._notify()

        self._loaded = asyncio.Event()
        self._source_task = asyncio.create_task(self._consume_source())
        logger.info("Practice session started")

        await self._loaded.wait()

    async def close(self):
        """End the session: cancel the subscription, timers and in-flight work."""
        if self._closed:
            return
        self._closed = True
        await self._cancel_work()
        self._stop_speech()
        logger.info(f"Practice session closed ({self.processed_count} words practiced)")

    async def _cancel_work(self):
        if self._pairing is not None:
            self._pairing.cancel()
            self._pairing = None

        tasks = [t for t in self._tasks if not t.done()]
        if self._source_task is not None and not self._source_task.done():
            tasks.append(self._source_task)
        self._source_task = None

        current = asyncio.current_task()
        tasks = [t for t in tasks if t is not current]
        for task in tasks:
            if task in self._tasks:
                self._cancelled_by_session.add(task)
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def _run(self, work: Awaitable[bool]) -> bool:
        """
        Run a command as a tracked task so close() can cancel it.

        Work cancelled by the session returns False. Cancelling the caller
        propagates as usual.
        """
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._cancelled_by_session:
                logger.info("Practice command cancelled")
                return False
            raise
        finally:
            self._cancelled_by_session.discard(task)

    # Due-word source

    async def _consume_source(self):
        try:
            async for words in self.source.watch():
                await self._on_snapshot(list(words))
            logger.info("Due-word source ended")
            if self._phase.kind == PhaseKind.LOADING:
                self._phase = SessionPhase.empty()
                self._notify()
        except asyncio.CancelledError:
            logger.debug("Due-word subscription cancelled")
            raise
        except Exception as e:
            logger.error(f"Error collecting words for practice: {e}")
            self._phase = SessionPhase.error(f"Failed to load words: {e}")
            self._notify()
        finally:
            if self._loaded is not None:
                self._loaded.set()

    async def _on_snapshot(self, words: List[Word]):
        logger.debug(f"Received {len(words)} due words")
        self._pool = words
        async with self._lock:
            kind = self._phase.kind
            if kind in (PhaseKind.LOADING, PhaseKind.EMPTY, PhaseKind.FINISHED):
                if self._remaining_pool():
                    self._start_next_batch()
                elif kind == PhaseKind.LOADING:
                    logger.info("No words to practice")
                    self._phase = SessionPhase.empty()
            # Batches in progress keep their words; the new pool is used
            # when the next batch is drawn.
        self._notify()
        if self._loaded is not None:
            self._loaded.set()

    def _remaining_pool(self) -> List[Word]:
        return [word for word in self._pool if word.id not in self._processed]

    # Batches

    def _start_next_batch(self):
        remaining = self._remaining_pool()
        if not remaining:
            self._batch = ()
            self._index = 0
            self._phase = SessionPhase.finished(self.processed_count)
            logger.info(f"Practice finished: {self.processed_count} words")
            return

        batch = tuple(remaining[:self.config.batch_size])
        self._batch = batch
        self._index = 0
        self._card.reset()
        self._stop_speech()

        if self._pairing is not None:
            self._pairing.cancel()
        self._pairing = PairingRound(
            batch,
            on_match=self.on_pair_matched,
            on_finished=self.on_pairing_finished,
            speak=self.speak_translation_text,
            mismatch_cooldown_ms=self.config.mismatch_cooldown_ms,
            completion_delay_ms=self.config.completion_delay_ms,
            rng=self._rng,
        )
        self._phase = SessionPhase.pairing(batch)
        self._pairing.start()
        logger.info(f"Starting pairing for batch of {len(batch)} words ({len(remaining) - len(batch)} more waiting)")

    def _advance(self):
        next_index = self._index + 1
        self._stop_speech()
        if next_index < len(self._batch):
            self._index = next_index
            self._card.reset()
            logger.debug(f"Moving to word {next_index + 1}/{len(self._batch)}")
        else:
            logger.debug("Batch complete")
            self._start_next_batch()

    def _fail(self, message: str):
        logger.error(f"Practice session error: {message}")
        self._phase = SessionPhase.error(message)

    # Drill commands

    def flip_card(self) -> Optional[CardFace]:
        """Flip the current drill card. Stops any speech in progress."""
        if self._phase.kind != PhaseKind.BATCH_REGULAR:
            logger.warning(f"Ignoring flip in phase {self._phase.kind.value}")
            return None
        self._stop_speech()
        face = self._card.flip()
        self._notify()
        return face

    async def on_card_swiped_left(self) -> bool:
        """The user did not know the word."""
        return await self._swipe(SwipeDirection.LEFT)

    async def on_card_swiped_right(self) -> bool:
        """The user knew the word."""
        return await self._swipe(SwipeDirection.RIGHT)

    async def _swipe(self, direction: SwipeDirection) -> bool:
        if self._lock.locked():
            logger.warning(f"Swipe {direction.value} rejected: previous answer still saving")
            return False
        return await self._run(self._process_swipe(direction))

    async def _process_swipe(self, direction: SwipeDirection) -> bool:
        async with self._lock:
            if self._phase.kind != PhaseKind.BATCH_REGULAR:
                logger.warning(f"Ignoring swipe in phase {self._phase.kind.value}")
                return False
            word = self.current_word
            if word is None:
                self._fail(f"No word at position {self._index} of a {len(self._batch)}-word batch")
                self._notify()
                return False
            try:
                quality = self._card.swipe(direction)
            except InvalidTransitionError as e:
                logger.warning(f"Ignoring swipe: {e}")
                return False

            if not await self._answer(word, quality, AnswerSource.DRILL):
                return False
            self._advance()
        self._notify()
        return True

    # Pairing commands

    async def on_pair_matched(self, word_id: str) -> bool:
        """Score a pairing match as a passed review. Queued behind other work."""
        return await self._run(self._process_pair_matched(word_id))

    async def _process_pair_matched(self, word_id: str) -> bool:
        async with self._lock:
            if self._phase.kind != PhaseKind.BATCH_PAIRING:
                logger.warning(f"Ignoring pair match in phase {self._phase.kind.value}")
                return False
            word = next((w for w in self._batch if w.id == word_id), None)
            if word is None:
                logger.error(f"Matched word {word_id} not found in current batch")
                return False
            word = self._latest.get(word.id, word)
            ok = await self._answer(word, self.config.match_quality, AnswerSource.PAIRING)
        self._notify()
        return ok

    async def on_pairing_finished(self) -> bool:
        """Move the current batch from pairing to the drill."""
        return await self._run(self._process_pairing_finished())

    async def _process_pairing_finished(self) -> bool:
        async with self._lock:
            if self._phase.kind != PhaseKind.BATCH_PAIRING:
                logger.warning(f"Ignoring pairing finished in phase {self._phase.kind.value}")
                return False
            if self._pairing is not None:
                self._pairing.cancel()
                self._pairing = None

            if not self._batch:
                logger.warning("Pairing finished with an empty batch, drawing the next one")
                self._start_next_batch()
            else:
                self._index = 0
                self._card.reset()
                self._stop_speech()
                self._phase = SessionPhase.regular(self._batch)
                logger.info(f"Pairing done, drilling {len(self._batch)} words")
        self._notify()
        return True

    # Answers

    async def _answer(self, word: Word, quality: int, source: AnswerSource) -> bool:
        """Record, schedule and persist one answer. Caller holds the lock."""
        try:
            updated = scheduler.review(word, quality, self._clock())
        except InvalidArgumentError as e:
            logger.error(f"Cannot schedule word {word.id}: {e}")
            self._error_message = e.message
            return False

        entry = UndoEntry(word=word, batch=self._batch, index=self._index, source=source)
        self._undo.push(entry)
        self._notify()

        try:
            await self._save(updated)
        except asyncio.CancelledError:
            self._undo.discard(entry)
            raise
        except PersistenceError as e:
            self._error_message = "Could not save your progress. It will be retried on the next review."
            logger.error(str(e))

        self._latest[word.id] = updated
        self._processed[word.id] += 1
        logger.debug(f"Word {word.text} answered with quality {quality} "
                     f"(interval {updated.interval}ms, {updated.status.value})")
        return True

    async def _save(self, word: Word):
        """
        Save a word, retrying on failure.

        Raises:
            PersistenceError: If every attempt failed
        """
        attempts = self.config.persistence_retries + 1
        timeout = self.config.persistence_timeout_ms / 1000
        reason = "save not acknowledged"

        for attempt in range(1, attempts + 1):
            try:
                if await asyncio.wait_for(self.persistence.save(word), timeout=timeout):
                    return
                reason = "save not acknowledged"
            except asyncio.TimeoutError:
                reason = f"timed out after {self.config.persistence_timeout_ms}ms"
            except asyncio.CancelledError:
                raise
            except Exception as e:
                reason = str(e)
            logger.warning(f"Saving word {word.id} failed ({reason}), attempt {attempt}/{attempts}")
            if attempt < attempts and self.config.retry_backoff_ms:
                await asyncio.sleep(self.config.retry_backoff_ms * attempt / 1000)

        raise PersistenceError(word.id, reason)

    # Undo

    async def undo_last_action(self) -> bool:
        """
        Reverse the most recent answer.

        Restores the word as it was before the answer. Drill answers also
        bring the drill back to the card they were given on.
        """
        if self._lock.locked():
            logger.warning("Undo rejected: an answer is still saving")
            return False
        return await self._run(self._process_undo())

    async def _process_undo(self) -> bool:
        async with self._lock:
            if self._undo and self._phase.kind not in UNDO_PHASES:
                logger.warning(f"Undo not available in phase {self._phase.kind.value}")
                self._error_message = "Undo is not available right now."
                self._notify()
                return False
            try:
                entry = self._undo.pop()
            except EmptyUndoError as e:
                logger.info("Undo requested with empty history")
                self._error_message = e.message
                self._notify()
                return False

            restored = entry.word
            try:
                # A word deleted since the answer stays deleted
                if await self._is_stored(restored.id):
                    await self._save(restored)
                else:
                    logger.info(f"Word {restored.id} no longer stored, undoing locally only")
            except asyncio.CancelledError:
                self._undo.push(entry)
                raise
            except PersistenceError as e:
                self._error_message = "Could not restore the word in storage."
                logger.error(str(e))

            self._latest[restored.id] = restored
            self._processed[restored.id] -= 1
            if self._processed[restored.id] <= 0:
                del self._processed[restored.id]

            if entry.source == AnswerSource.DRILL:
                self._restore_drill_position(entry)
            elif (self._phase.kind == PhaseKind.BATCH_PAIRING and self._pairing is not None
                  and self._batch == entry.batch):
                self._pairing.unmatch(restored.id)

            logger.info(f"Undid answer for word {restored.text}")
        self._notify()
        return True

    async def _is_stored(self, word_id: str) -> bool:
        """Look the word up before restoring it. Unknown means stored."""
        timeout = self.config.persistence_timeout_ms / 1000
        try:
            return await asyncio.wait_for(self.persistence.get_by_id(word_id), timeout=timeout) is not None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Looking up word {word_id} failed ({e or type(e).__name__}), restoring anyway")
            return True

    def _restore_drill_position(self, entry: UndoEntry):
        if self._pairing is not None:
            self._pairing.cancel()
            self._pairing = None
        self._batch = entry.batch
        self._index = entry.index
        self._card.reset()
        self._stop_speech()
        self._phase = SessionPhase.regular(entry.batch)

    # Speech and messages

    def speak_translation_text(self, text: str):
        """Read a translation aloud, interrupting anything already playing."""
        self._stop_speech()
        if text and text.strip():
            try:
                self.speech.speak(text)
            except Exception as e:
                logger.error(f"Speech failed: {e}")
        else:
            logger.debug("Nothing to speak")

    def clear_error_message(self):
        self._error_message = None
        self._notify()

    def _stop_speech(self):
        try:
            self.speech.stop()
        except Exception as e:
            logger.error(f"Stopping speech failed: {e}")
