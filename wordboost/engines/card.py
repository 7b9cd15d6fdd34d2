"""
Flip-card state machine for the regular drill.
One card shows a prompt; flipping reveals the answer; a swipe grades it.
"""
import logging
import random
from enum import Enum
from typing import Optional

from ..core.errors import InvalidArgumentError, InvalidTransitionError

logger = logging.getLogger(__name__)


class CardFace(Enum):
    """Which face of the card is showing."""
    PROMPT = "prompt"
    ANSWER = "answer"


class PromptSide(Enum):
    """Which text of the word the prompt shows."""
    ORIGINAL = "original"
    TRANSLATION = "translation"


class SwipeDirection(Enum):
    RIGHT = "right"    # "I know it"
    LEFT = "left"      # "I don't know it"


class CardStateMachine:
    """
    Two-state flip model for a single word.

    PROMPT --flip--> ANSWER --swipe--> quality, then reset() for the next word.
    Swiping a card that has not been flipped is an invalid transition.
    """

    def __init__(
        self,
        know_quality: int = 5,
        dont_know_quality: int = 2,
        rng: Optional[random.Random] = None,
    ):
        if not 3 <= know_quality <= 5:
            raise InvalidArgumentError("know_quality must be 3-5", "know_quality", know_quality)
        if not 0 <= dont_know_quality < 3:
            raise InvalidArgumentError("dont_know_quality must be 0-2", "dont_know_quality", dont_know_quality)

        self.know_quality = know_quality
        self.dont_know_quality = dont_know_quality
        self._rng = rng or random.Random()

        self.face = CardFace.PROMPT
        self.prompt_side = PromptSide.ORIGINAL

    def flip(self) -> CardFace:
        """Toggle between prompt and answer."""
        self.face = CardFace.ANSWER if self.face == CardFace.PROMPT else CardFace.PROMPT
        logger.debug(f"Card flipped to {self.face.value}")
        return self.face

    def swipe(self, direction: SwipeDirection) -> int:
        """
        Grade the card.

        Returns:
            Quality score for the swipe direction

        Raises:
            InvalidTransitionError: If the answer is not showing
        """
        if self.face != CardFace.ANSWER:
            raise InvalidTransitionError(self.face.value, f"swipe {direction.value}")
        if direction == SwipeDirection.RIGHT:
            return self.know_quality
        return self.dont_know_quality

    def reset(self) -> PromptSide:
        """Show a fresh prompt, picking at random which side is asked."""
        self.face = CardFace.PROMPT
        self.prompt_side = self._rng.choice((PromptSide.ORIGINAL, PromptSide.TRANSLATION))
        logger.debug(f"Card reset, prompting with {self.prompt_side.value}")
        return self.prompt_side
