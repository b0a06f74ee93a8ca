"""Tests for saving, listing and deleting articles."""

import pytest

from conftest import make_article
from lingua_articles.errors import (
    ArticleDeleteFailed,
    ArticleSaveFailed,
    StoreRejected,
    StoreUnavailable,
)
from lingua_articles.userdata.profiles import PROFILES_TABLE
from lingua_articles.userdata.stats import ARTICLES_TABLE, FAVORITE_TOPICS_TABLE


class TestSaveArticle:
    async def test_save_then_list(self, manager):
        article = make_article("fútbol", "A2")
        result = await manager.save_article("user1", article)
        assert result.stats_recorded is True

        articles = await manager.list_articles("user1")
        assert len(articles) == 1
        saved = articles[0]
        assert saved.id == result.article.id
        assert saved.topic == "fútbol"
        assert saved.level == "A2"
        assert saved.content == article.content
        assert saved.user_id == "user1"

    async def test_newest_first(self, manager):
        for topic in ["uno", "dos", "tres"]:
            await manager.save_article("user1", make_article(topic))
        topics = [a.topic for a in await manager.list_articles("user1")]
        assert topics == ["tres", "dos", "uno"]

    async def test_denormalized_row(self, manager, store):
        await manager.save_article("user2", make_article("comida"))
        row = store.rows(ARTICLES_TABLE)[0]
        profile = store.rows(PROFILES_TABLE)[0]
        assert row["user_id"] == profile["id"]
        assert row["article_content"] == "Un artículo sobre comida."
        # Optional readings are omitted rather than stored as null
        assert row["vocabulary"] == [
            {"word": "partido", "meaning": "試合"},
            {"word": "勝つ", "meaning": "ganar", "reading": "かつ"},
        ]

    async def test_insert_rejected(self, manager, store):
        store.fail("insert", ARTICLES_TABLE, StoreRejected("violates check constraint", 400))
        with pytest.raises(ArticleSaveFailed):
            await manager.save_article("user1", make_article())
        assert store.rows(FAVORITE_TOPICS_TABLE) == []

    async def test_transport_failure_keeps_its_type(self, manager, store):
        store.fail("insert", ARTICLES_TABLE)
        with pytest.raises(StoreUnavailable):
            await manager.save_article("user1", make_article())

    async def test_stats_failure_keeps_article(self, manager, store):
        store.fail("update", PROFILES_TABLE)
        result = await manager.save_article("user1", make_article())
        assert result.stats_recorded is False
        assert len(await manager.list_articles("user1")) == 1

    async def test_saves_are_scoped(self, manager):
        await manager.save_article("user1", make_article("a"))
        await manager.save_article("user2", make_article("b"))
        assert [a.topic for a in await manager.list_articles("user1")] == ["a"]
        assert [a.topic for a in await manager.list_articles("user2")] == ["b"]


class TestListArticles:
    async def test_empty(self, manager):
        assert await manager.list_articles("user1") == []

    async def test_read_failure_is_soft(self, manager, store):
        await manager.save_article("user1", make_article())
        store.fail("select", ARTICLES_TABLE)
        assert await manager.list_articles("user1") == []

    async def test_profile_failure_is_soft(self, manager, store):
        store.fail("select", PROFILES_TABLE)
        assert await manager.list_articles("user1") == []


class TestDeleteArticle:
    async def test_delete_own_article(self, manager):
        kept = await manager.save_article("user1", make_article("kept"))
        gone = await manager.save_article("user1", make_article("gone"))
        await manager.delete_article("user1", gone.article.id)
        assert [a.id for a in await manager.list_articles("user1")] == [kept.article.id]

    async def test_cannot_delete_other_users_article(self, manager):
        theirs = await manager.save_article("user2", make_article())
        await manager.delete_article("user1", theirs.article.id)
        assert len(await manager.list_articles("user2")) == 1

    async def test_missing_id_is_noop(self, manager):
        await manager.save_article("user1", make_article("a", "B1"))
        before = await manager.get_stats("user1")
        await manager.delete_article("user1", "does-not-exist")
        after = await manager.get_stats("user1")
        assert len(await manager.list_articles("user1")) == 1
        assert after.total_articles == before.total_articles
        assert after.favorite_topics == before.favorite_topics
        assert after.level_distribution == before.level_distribution

    async def test_delete_failure_raises(self, manager, store):
        saved = await manager.save_article("user1", make_article())
        store.fail("delete", ARTICLES_TABLE, StoreRejected("permission denied", 403))
        with pytest.raises(ArticleDeleteFailed):
            await manager.delete_article("user1", saved.article.id)
