"""
In-memory word store.
Serves as both the due-word source and the persistence layer for the
console client and for tests.
"""
import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Set, Union

import yaml

from ..core.errors import InvalidArgumentError
from ..core.word import Word
from ..engines.scheduler import now_ms

logger = logging.getLogger(__name__)


class InMemoryWordStore:
    """
    Word storage kept in a dict.

    Features:
    - Live due-word stream: every watcher gets the due list on subscribe
      and after each change
    - Configurable save latency and failure injection
    - YAML import
    """

    def __init__(
        self,
        words: Optional[Iterable[Word]] = None,
        clock: Callable[[], int] = now_ms,
        save_delay_ms: int = 0,
    ):
        self._words: Dict[str, Word] = {}
        self._clock = clock
        self.save_delay_ms = save_delay_ms
        self._watchers: Set[asyncio.Queue] = set()

        # Failure injection
        self.fail_saves = 0              # number of upcoming saves to refuse
        self.failing_ids: Set[str] = set()

        self.save_count = 0
        for word in words or []:
            self._words[word.id] = word

    # Queries

    def all_words(self) -> List[Word]:
        return list(self._words.values())

    def due_words(self) -> List[Word]:
        """Words whose review time has passed, most overdue first."""
        now = self._clock()
        due = [word for word in self._words.values() if word.is_due(now)]
        return sorted(due, key=lambda w: w.next_review)

    def get(self, word_id: str) -> Optional[Word]:
        return self._words.get(word_id)

    # WordPersistence

    async def save(self, word: Word) -> bool:
        if self.save_delay_ms:
            await asyncio.sleep(self.save_delay_ms / 1000)
        if self.fail_saves > 0 or word.id in self.failing_ids:
            self.fail_saves = max(0, self.fail_saves - 1)
            logger.warning(f"Refusing save of word {word.id}")
            return False

        self._words[word.id] = word
        self.save_count += 1
        self._publish()
        return True

    async def get_by_id(self, word_id: str) -> Optional[Word]:
        return self._words.get(word_id)

    # DueWordSource

    async def watch(self) -> AsyncIterator[List[Word]]:
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.add(queue)
        queue.put_nowait(self.due_words())
        try:
            while True:
                yield await queue.get()
        finally:
            self._watchers.discard(queue)

    # Mutations outside a session

    def add(self, word: Word):
        """Add or replace a word and notify watchers."""
        self._words[word.id] = word
        self._publish()

    def remove(self, word_id: str) -> bool:
        """Delete a word and notify watchers."""
        if self._words.pop(word_id, None) is None:
            return False
        self._publish()
        return True

    def refresh(self):
        """Re-send the due list, e.g. after time moved on."""
        self._publish()

    def _publish(self):
        due = self.due_words()
        for queue in list(self._watchers):
            # Only the latest snapshot matters to a slow watcher
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(due)

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    # Import

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **kwargs) -> "InMemoryWordStore":
        """
        Load words from a YAML file.

        Expected format:
            words:
              - id: w1
                text: apple
                translation: яблуко
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("words", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise InvalidArgumentError(f"{path} must contain a list of words")

        words = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict) or "text" not in entry or "translation" not in entry:
                raise InvalidArgumentError(f"Word #{i + 1} in {path} needs text and translation")
            words.append(Word(
                id=str(entry.get("id", f"w{i + 1}")),
                text=str(entry["text"]),
                translation=str(entry["translation"]),
                dictionary_id=str(entry.get("dictionary_id", "")),
                repetition=int(entry.get("repetition", 0)),
                easiness=float(entry.get("easiness", 2.5)),
                interval=int(entry.get("interval", 0)),
                last_reviewed=int(entry.get("last_reviewed", 0)),
                next_review=int(entry.get("next_review", 0)),
            ))
        logger.info(f"Loaded {len(words)} words from {path}")
        return cls(words, **kwargs)
