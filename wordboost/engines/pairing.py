"""
Pairing Round - memory-match mini-game over a batch of words.

Every word contributes an original card and a translation card. The player
clicks an original and its translation to match them; a wrong pair is
flagged for a short cool-down during which clicks are ignored. Once every
card is matched the round reports that it finished, exactly once.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..core.word import Word

logger = logging.getLogger(__name__)


class PairingSide(Enum):
    ORIGINAL = "original"
    TRANSLATION = "translation"


class SelectOutcome(Enum):
    """What a click did."""
    IGNORED = "ignored"            # matched card, cool-down, or finished round
    SELECTED = "selected"          # first card of a pair
    DESELECTED = "deselected"      # clicked the selected card again
    RESELECTED = "reselected"      # same side as selection, selection replaced
    MATCHED = "matched"
    MISMATCHED = "mismatched"


@dataclass
class PairingCard:
    """One card on the pairing board."""
    word: Word
    side: PairingSide
    matched: bool = False
    mismatched: bool = False

    @property
    def id(self) -> str:
        return f"{self.word.id}:{self.side.value}"

    @property
    def text(self) -> str:
        if self.side == PairingSide.ORIGINAL:
            return self.word.text
        return self.word.translation


class PairingRound:
    """
    Memory-match game for one batch.

    Features:
    - Shuffled board of 2N cards
    - Selection, re-selection and deselection
    - Timed mismatch cool-down
    - Delayed, single completion signal
    """

    def __init__(
        self,
        words: Sequence[Word],
        on_match: Optional[Callable[[str], Awaitable[None]]] = None,
        on_finished: Optional[Callable[[], Awaitable[None]]] = None,
        speak: Optional[Callable[[str], None]] = None,
        mismatch_cooldown_ms: int = 600,
        completion_delay_ms: int = 800,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize a pairing round.

        Args:
            words: Batch of words to pair
            on_match: Awaited with the word id when a pair is matched
            on_finished: Awaited once after every card is matched
            speak: Called with a translation to read aloud
            mismatch_cooldown_ms: How long a wrong pair stays flagged
            completion_delay_ms: Pause between the last match and on_finished
            rng: Random source used for shuffling
        """
        self.words = tuple(words)
        self.on_match = on_match
        self.on_finished = on_finished
        self.speak = speak
        self.mismatch_cooldown_ms = mismatch_cooldown_ms
        self.completion_delay_ms = completion_delay_ms

        cards = [PairingCard(word, PairingSide.ORIGINAL) for word in self.words]
        cards += [PairingCard(word, PairingSide.TRANSLATION) for word in self.words]
        (rng or random.Random()).shuffle(cards)
        self.cards: List[PairingCard] = cards
        self._by_id: Dict[str, PairingCard] = {card.id: card for card in cards}

        self.selected: Optional[PairingCard] = None
        self._finished = False
        self._cancelled = False
        self._cooldown_task: Optional[asyncio.Task] = None
        self._completion_task: Optional[asyncio.Task] = None

        logger.debug(f"PairingRound created with {len(self.words)} words")

    # State

    @property
    def is_complete(self) -> bool:
        """True when every card is matched."""
        return all(card.matched for card in self.cards)

    @property
    def is_finished(self) -> bool:
        """True once on_finished has been signalled."""
        return self._finished

    @property
    def in_cooldown(self) -> bool:
        return any(card.mismatched for card in self.cards)

    def get_card(self, card_id: str) -> Optional[PairingCard]:
        return self._by_id.get(card_id)

    def matched_word_ids(self) -> List[str]:
        return [card.word.id for card in self.cards
                if card.matched and card.side == PairingSide.ORIGINAL]

    # Lifecycle

    def start(self):
        """Begin the round. An empty round completes right away."""
        if not self.cards:
            logger.info("Empty pairing round, finishing immediately")
            self._schedule_completion(delay_ms=0)

    def cancel(self):
        """Cancel pending cool-down and completion timers."""
        self._cancelled = True
        if self._cooldown_task is not None and not self._cooldown_task.done():
            self._cooldown_task.cancel()
        # Once on_finished is running the completion task is left to return on its own.
        if self._completion_task is not None and not self._completion_task.done() and not self._finished:
            self._completion_task.cancel()
        self._cooldown_task = None
        self._completion_task = None

    async def drain(self):
        """Wait for pending timers to run."""
        while True:
            pending = [t for t in (self._cooldown_task, self._completion_task)
                       if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # Clicks

    async def select(self, card_id: str) -> SelectOutcome:
        """
        Handle a click on a card.

        Args:
            card_id: Id of the clicked card (`PairingCard.id`)

        Returns:
            What the click did
        """
        card = self._by_id.get(card_id)
        if card is None:
            logger.warning(f"Unknown pairing card: {card_id}")
            return SelectOutcome.IGNORED
        if self._cancelled or self._finished or card.matched or self.in_cooldown:
            return SelectOutcome.IGNORED

        first = self.selected

        if first is card:
            self.selected = None
            return SelectOutcome.DESELECTED

        if first is None or first.side == card.side:
            self.selected = card
            if card.side == PairingSide.TRANSLATION:
                self._speak(card.word.translation)
            return SelectOutcome.SELECTED if first is None else SelectOutcome.RESELECTED

        if first.word.id == card.word.id:
            return await self._match(first, card)

        self._mismatch(first, card)
        return SelectOutcome.MISMATCHED

    async def _match(self, first: PairingCard, second: PairingCard) -> SelectOutcome:
        first.matched = True
        second.matched = True
        self.selected = None
        word = first.word
        logger.debug(f"Pair matched: {word.text}")

        self._speak(word.translation)

        if self.on_match is not None:
            await self.on_match(word.id)

        if self.is_complete and not self._cancelled:
            self._schedule_completion(self.completion_delay_ms)
        return SelectOutcome.MATCHED

    def _mismatch(self, first: PairingCard, second: PairingCard):
        first.mismatched = True
        second.mismatched = True
        logger.debug(f"Pair mismatched: {first.text} ({first.side.value}) vs {second.text} ({second.side.value})")

        translation_card = first if first.side == PairingSide.TRANSLATION else second
        self._speak(translation_card.word.translation)

        self._cooldown_task = asyncio.create_task(self._clear_mismatch_after(self.mismatch_cooldown_ms))

    async def _clear_mismatch_after(self, delay_ms: int):
        try:
            await asyncio.sleep(delay_ms / 1000)
        except asyncio.CancelledError:
            logger.debug("Mismatch cool-down cancelled")
            raise
        for card in self.cards:
            card.mismatched = False
        self.selected = None

    # Undo support

    def unmatch(self, word_id: str) -> bool:
        """
        Put a matched pair back on the board.

        Returns:
            False if the pair was not matched or the round already finished
        """
        if self._finished:
            return False
        pair = [card for card in self.cards if card.word.id == word_id and card.matched]
        if not pair:
            return False
        for card in pair:
            card.matched = False
        if self._completion_task is not None and not self._completion_task.done():
            self._completion_task.cancel()
            self._completion_task = None
        logger.debug(f"Pair unmatched: {word_id}")
        return True

    # Completion

    def _schedule_completion(self, delay_ms: int):
        if self._completion_task is not None and not self._completion_task.done():
            return
        self._completion_task = asyncio.create_task(self._finish_after(delay_ms))

    async def _finish_after(self, delay_ms: int):
        await asyncio.sleep(delay_ms / 1000)
        if self._finished or self._cancelled or not self.is_complete:
            return
        self._finished = True
        logger.info(f"Pairing round finished ({len(self.words)} words)")
        if self.on_finished is not None:
            await self.on_finished()

    def _speak(self, text: str):
        if self.speak is not None and text and text.strip():
            try:
                self.speak(text)
            except Exception as e:
                logger.error(f"Speech request failed: {e}")
