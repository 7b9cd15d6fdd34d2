"""
Interfaces of the collaborators a practice session talks to.

The session never owns storage or audio; it reaches them only through
these protocols.
"""
from typing import AsyncIterator, List, Optional, Protocol

from .word import Word


class DueWordSource(Protocol):
    """Live stream of the full list of due words."""

    def watch(self) -> AsyncIterator[List[Word]]:
        """Yield the current due list, then a new list after every change."""
        ...


class WordPersistence(Protocol):
    """Asynchronous word storage."""

    async def save(self, word: Word) -> bool:
        """Persist a word. Returns True once the store acknowledged it."""
        ...

    async def get_by_id(self, word_id: str) -> Optional[Word]:
        """Stored version of a word, or None if it was deleted. Checked before an undo restore."""
        ...


class SpeechCollaborator(Protocol):
    """Text-to-speech output. Both calls return immediately."""

    def speak(self, text: str) -> None:
        ...

    def stop(self) -> None:
        ...
