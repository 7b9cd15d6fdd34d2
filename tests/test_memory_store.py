"""
In-Memory Word Store Tests.
Tests due-word snapshots, saves, failure injection and YAML import.
"""
import asyncio

import pytest

from wordboost.core.errors import InvalidArgumentError
from wordboost.core.word import Word
from wordboost.integrations.memory_store import InMemoryWordStore

pytestmark = pytest.mark.asyncio


class TestDueWords:
    """Test the due list."""

    async def test_only_due_words_listed(self, make_store, clock):
        later = Word(id="later", text="later", translation="пізніше",
                     repetition=1, interval=60000, next_review=clock() + 60000)
        now = Word(id="now", text="now", translation="зараз")
        store = make_store([later, now])

        assert [w.id for w in store.due_words()] == ["now"]

    async def test_most_overdue_first(self, make_store, clock):
        recent = Word(id="recent", text="a", translation="a", repetition=1,
                      interval=60000, next_review=clock() - 10)
        old = Word(id="old", text="b", translation="b", repetition=1,
                   interval=60000, next_review=clock() - 10_000)
        store = make_store([recent, old])

        assert [w.id for w in store.due_words()] == ["old", "recent"]


class TestWatch:
    """Test the live due-word stream."""

    async def test_initial_snapshot_and_updates(self, make_store, words, clock):
        store = make_store(words[:2])
        stream = store.watch()

        first = await stream.__anext__()
        assert [w.id for w in first] == ["w1", "w2"]

        answered = words[0].updated(repetition=1, interval=60000, next_review=clock() + 60000)
        assert await store.save(answered)
        second = await stream.__anext__()
        assert [w.id for w in second] == ["w2"]

        await stream.aclose()
        assert store.watcher_count == 0

    async def test_slow_watcher_gets_latest_only(self, make_store, words):
        store = make_store(words[:1])
        stream = store.watch()
        await stream.__anext__()

        store.add(words[1])
        store.add(words[2])
        latest = await stream.__anext__()
        assert [w.id for w in latest] == ["w1", "w2", "w3"]
        await stream.aclose()

    async def test_remove_publishes(self, make_store, words):
        store = make_store(words[:2])
        stream = store.watch()
        await stream.__anext__()

        assert store.remove("w1") is True
        assert [w.id for w in await stream.__anext__()] == ["w2"]
        assert store.remove("w1") is False
        await stream.aclose()


class TestSave:
    """Test persistence behaviour."""

    async def test_save_and_get(self, make_store, words):
        store = make_store(words)
        updated = words[0].updated(repetition=1, interval=60000)

        assert await store.save(updated) is True
        assert await store.get_by_id("w1") == updated
        assert store.save_count == 1

    async def test_fail_saves_counts_down(self, make_store, words):
        store = make_store(words)
        store.fail_saves = 1
        updated = words[0].updated(repetition=1, interval=60000)

        assert await store.save(updated) is False
        assert store.get("w1").repetition == 0
        assert await store.save(updated) is True
        assert store.get("w1").repetition == 1

    async def test_failing_ids(self, make_store, words):
        store = make_store(words)
        store.failing_ids.add("w2")

        assert await store.save(words[1]) is False
        assert await store.save(words[0]) is True

    async def test_save_delay(self, make_store, words):
        store = make_store(words, save_delay_ms=30)
        task = asyncio.create_task(store.save(words[0].updated(repetition=1, interval=60000)))
        await asyncio.sleep(0)
        assert store.get("w1").repetition == 0
        assert await task is True
        assert store.get("w1").repetition == 1


class TestYamlImport:
    """Test loading words from YAML."""

    async def test_from_yaml(self, tmp_path):
        path = tmp_path / "words.yaml"
        path.write_text(
            "words:\n"
            "  - id: a1\n"
            "    text: apple\n"
            "    translation: яблуко\n"
            "  - text: bread\n"
            "    translation: хліб\n"
            "    repetition: 1\n"
            "    interval: 60000\n",
            encoding="utf-8",
        )

        store = InMemoryWordStore.from_yaml(path)

        assert store.get("a1").translation == "яблуко"
        assert store.get("w2").repetition == 1
        assert len(store.all_words()) == 2

    async def test_from_yaml_requires_translation(self, tmp_path):
        path = tmp_path / "words.yaml"
        path.write_text("words:\n  - text: apple\n", encoding="utf-8")

        with pytest.raises(InvalidArgumentError):
            InMemoryWordStore.from_yaml(path)
