"""
Undo stack for practice answers.
Keeps the word as it was before each answer together with where the
session was, so the last N answers can be reversed.
"""
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Optional, Tuple

from .errors import EmptyUndoError, InvalidArgumentError
from .word import Word

logger = logging.getLogger(__name__)


class AnswerSource(Enum):
    """Where an answer came from."""
    DRILL = "drill"
    PAIRING = "pairing"


@dataclass(frozen=True)
class UndoEntry:
    """Pre-update snapshot of a word and the batch position it was answered at."""
    word: Word
    batch: Tuple[Word, ...]
    index: int
    source: AnswerSource = AnswerSource.DRILL


class UndoStack:
    """
    LIFO of UndoEntry values.

    With `max_size` set the stack is bounded and the oldest entry is
    dropped when a new one would exceed it.
    """

    def __init__(self, max_size: Optional[int] = None):
        if max_size is not None and max_size <= 0:
            raise InvalidArgumentError("max_size must be positive", "max_size", max_size)
        self.max_size = max_size
        self._entries: Deque[UndoEntry] = deque(maxlen=max_size)

    def push(self, entry: UndoEntry):
        if self.max_size is not None and len(self._entries) == self.max_size:
            logger.debug(f"Undo stack full ({self.max_size}), dropping oldest entry")
        self._entries.append(entry)

    def pop(self) -> UndoEntry:
        """
        Remove and return the most recent entry.

        Raises:
            EmptyUndoError: If there is nothing to undo
        """
        if not self._entries:
            raise EmptyUndoError()
        return self._entries.pop()

    def peek(self) -> Optional[UndoEntry]:
        return self._entries[-1] if self._entries else None

    def discard(self, entry: UndoEntry) -> bool:
        """Remove a specific entry (the newest match). Returns False if absent."""
        for i in range(len(self._entries) - 1, -1, -1):
            if self._entries[i] is entry:
                del self._entries[i]
                return True
        return False

    def clear(self):
        self._entries.clear()

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
