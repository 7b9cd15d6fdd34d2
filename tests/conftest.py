"""
Pytest configuration for WordBoost tests.
Shared words, stores and session factories.
"""
import random
from typing import List
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from wordboost.core.config import PracticeConfig
from wordboost.core.word import Word
from wordboost.integrations.memory_store import InMemoryWordStore
from wordboost.modes.practice_session import PracticeSession

NOW_MS = 1_700_000_000_000


@pytest.fixture
def clock():
    """Frozen clock so due-ness and timestamps are predictable."""
    return lambda: NOW_MS


@pytest.fixture
def words() -> List[Word]:
    """Six fresh words, enough for one full batch and one extra."""
    pairs = [
        ("apple", "яблуко"),
        ("bread", "хліб"),
        ("cherry", "вишня"),
        ("dog", "собака"),
        ("egg", "яйце"),
        ("fig", "інжир"),
    ]
    return [
        Word(id=f"w{i}", text=text, translation=translation, dictionary_id="en-uk")
        for i, (text, translation) in enumerate(pairs, start=1)
    ]


@pytest.fixture
def make_store(clock):
    """Factory for in-memory stores sharing the frozen clock."""
    def factory(initial, **kwargs) -> InMemoryWordStore:
        return InMemoryWordStore(initial, clock=clock, **kwargs)
    return factory


@pytest.fixture
def speech():
    """Mock speech collaborator."""
    return MagicMock()


@pytest.fixture
def practice_config() -> PracticeConfig:
    """Config without timers or retries so tests run instantly."""
    return PracticeConfig(
        mismatch_cooldown_ms=0,
        completion_delay_ms=0,
        persistence_retries=0,
        retry_backoff_ms=0,
        persistence_timeout_ms=1000,
    )


@pytest_asyncio.fixture
async def make_session(speech, practice_config, clock):
    """Factory for practice sessions, closed after the test."""
    sessions = []

    def factory(store, persistence=None, config=None) -> PracticeSession:
        session = PracticeSession(
            source=store,
            persistence=persistence or store,
            speech=speech,
            config=config or practice_config,
            rng=random.Random(7),
            clock=clock,
        )
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        await session.close()
