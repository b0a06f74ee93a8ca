"""Shared fixtures: in-memory backend with fault injection, legacy store on tmp_path."""

import json

import pytest

from lingua_articles.errors import StoreUnavailable
from lingua_articles.models.article import ArticleContent, ArticleInput, VocabularyEntry
from lingua_articles.storage.local_store import LocalStore, articles_key
from lingua_articles.storage.memory import MemoryStore
from lingua_articles.userdata.local_manager import LocalUserDataManager
from lingua_articles.userdata.remote_manager import RemoteUserDataManager

PROFILE_DEFAULTS = {
    "user1": {"name": "NAMICHI", "description": "Spanish learner"},
    "user2": {"name": "JOSÉ", "description": "Japanese learner"},
}


class FlakyStore(MemoryStore):
    """MemoryStore that raises on chosen (operation, table) pairs.

    ``fail(op, table, after=n)`` lets ``n`` matching calls through, then fails
    every later one until ``heal()``.
    """

    def __init__(self):
        super().__init__()
        self.faults: dict[tuple[str, str], list] = {}

    def fail(self, op: str, table: str, error: Exception | None = None, after: int = 0) -> None:
        self.faults[(op, table)] = [after, error or StoreUnavailable(f"{op} {table}: connection refused")]

    def heal(self) -> None:
        self.faults.clear()

    def _maybe_fail(self, op: str, table: str) -> None:
        fault = self.faults.get((op, table))
        if fault is None:
            return
        if fault[0] > 0:
            fault[0] -= 1
            return
        raise fault[1]

    async def select(self, table, **kwargs):
        self._maybe_fail("select", table)
        return await super().select(table, **kwargs)

    async def insert(self, table, row):
        self._maybe_fail("insert", table)
        return await super().insert(table, row)

    async def update(self, table, values, *, filters):
        self._maybe_fail("update", table)
        return await super().update(table, values, filters=filters)

    async def delete(self, table, *, filters):
        self._maybe_fail("delete", table)
        return await super().delete(table, filters=filters)


def make_article(topic: str = "fútbol", level: str = "A2", text: str | None = None) -> ArticleInput:
    return ArticleInput(
        topic=topic,
        level=level,
        content=ArticleContent(
            article=text or f"Un artículo sobre {topic}.",
            vocabulary=[
                VocabularyEntry(word="partido", meaning="試合"),
                VocabularyEntry(word="勝つ", meaning="ganar", reading="かつ"),
            ],
        ),
    )


def legacy_entry(index: int, topic: str = "viajes", level: str = "B1") -> dict:
    """An article as the browser-only client stored it."""
    return {
        "id": str(1700000000000 + index),
        "topic": topic,
        "level": level,
        "content": {
            "article": f"Legacy article {index}",
            "vocabulary": [{"word": f"palabra{index}", "meaning": f"単語{index}"}],
        },
        "timestamp": f"2024-01-0{index + 1}T10:00:00.000Z",
        "userId": "user1",
    }


def seed_legacy(store: LocalStore, identity: str, entries: list[dict]) -> None:
    store.set_item(articles_key(identity), json.dumps(entries))
    store.set_item(f"userStats_{identity}", json.dumps({"totalArticles": len(entries)}))
    store.set_item(f"userSettings_{identity}", json.dumps({"interfaceLanguage": "english"}))


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def manager(store):
    return RemoteUserDataManager(store, PROFILE_DEFAULTS)


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / "local_store")


@pytest.fixture
def legacy(local_store):
    return LocalUserDataManager(local_store, PROFILE_DEFAULTS)
