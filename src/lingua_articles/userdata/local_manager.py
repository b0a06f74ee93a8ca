"""UserDataManager over the legacy local key-value store.

Layout per identity (as written by the browser-only client):

* ``savedArticles_<identity>``: list of articles, oldest first
* ``userStats_<identity>``: ``{totalArticles, favoriteTopics, levelDistribution,
  lastActivity, topicCounts}``
* ``userSettings_<identity>``: ``{interfaceLanguage}``

Older stats records have no ``topicCounts``; their ``favoriteTopics`` is a
most-recent-first list and is returned as stored. ``levelDistribution`` is
kept up to date on save for the browser client, but ``get_stats`` counts
levels from the surviving articles so deletes are reflected.
"""

import time
from collections.abc import Mapping

import structlog

from lingua_articles.config import load_profile_defaults
from lingua_articles.models.article import ArticleInput, SavedArticle, SaveResult, UserStats
from lingua_articles.models.user_profile import (
    InterfaceLanguage,
    UserProfile,
    UserSettings,
    now_iso,
)
from lingua_articles.storage.local_store import (
    LocalStore,
    articles_key,
    legacy_keys,
    settings_key,
    stats_key,
)
from lingua_articles.userdata.base import UserDataManager
from lingua_articles.userdata.stats import TOP_TOPICS

logger = structlog.get_logger()


def rank_topics(topic_counts: Mapping[str, int], limit: int = TOP_TOPICS) -> list[str]:
    """Rank by count, ties most recent first.

    ``topic_counts`` is ordered least to most recently used.
    """
    recent_first = list(reversed(list(topic_counts.items())))
    ranked = sorted(recent_first, key=lambda item: -item[1])
    return [topic for topic, _ in ranked[:limit]]


class LocalUserDataManager(UserDataManager):
    """Legacy local-only implementation.

    Args:
        store: Key-value store holding the legacy keys.
        profile_defaults: Optional identity -> display name/description table.
    """

    def __init__(
        self,
        store: LocalStore,
        profile_defaults: Mapping[str, Mapping[str, str]] | None = None,
    ):
        self.store = store
        self.profile_defaults = (
            profile_defaults if profile_defaults is not None else load_profile_defaults()
        )

    # Legacy records, used directly by the migration coordinator

    def has_articles(self, identity: str) -> bool:
        """An empty stored value counts as no data."""
        raw = self.store.get_item(articles_key(identity))
        return bool(raw and raw.strip())

    def read_articles(self, identity: str) -> list[SavedArticle]:
        """Stored articles in stored (oldest first) order."""
        raw = self.store.get_json(articles_key(identity)) or []
        return [SavedArticle.model_validate(item) for item in raw]

    def clear(self, identity: str) -> None:
        for key in legacy_keys(identity):
            self.store.remove_item(key)
        logger.info("legacy_data_cleared", identity=identity)

    def _write_articles(self, identity: str, articles: list[SavedArticle]) -> None:
        self.store.set_json(
            articles_key(identity),
            [a.model_dump(mode="json", by_alias=True) for a in articles],
        )

    def _new_id(self, articles: list[SavedArticle]) -> str:
        taken = {a.id for a in articles}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def _record_stats(self, identity: str, topic: str, level: str) -> None:
        stats = self.store.get_json(stats_key(identity), {}) or {}
        topic_counts: dict[str, int] = dict(stats.get("topicCounts") or {})
        count = topic_counts.pop(topic, 0) + 1
        topic_counts[topic] = count
        levels: dict[str, int] = dict(stats.get("levelDistribution") or {})
        levels[level] = levels.get(level, 0) + 1
        self.store.set_json(
            stats_key(identity),
            {
                "totalArticles": int(stats.get("totalArticles") or 0) + 1,
                "favoriteTopics": rank_topics(topic_counts),
                "levelDistribution": levels,
                "lastActivity": now_iso(),
                "topicCounts": topic_counts,
            },
        )

    # UserDataManager hooks

    async def _ensure_profile(self, identity: str) -> UserProfile:
        entry = self.profile_defaults.get(identity, {})
        settings = await self.get_settings(identity)
        stats = self.store.get_json(stats_key(identity), {}) or {}
        return UserProfile(
            id=identity,
            user_type=identity,
            name=entry.get("name", identity),
            description=entry.get("description", ""),
            interface_language=settings.interface_language,
            total_articles=int(stats.get("totalArticles") or 0),
        )

    async def _save_article(self, identity: str, article: ArticleInput) -> SaveResult:
        articles = self.read_articles(identity)
        saved = SavedArticle(
            id=self._new_id(articles),
            topic=article.topic,
            level=article.level,
            content=article.content,
            user_id=identity,
        )
        articles.append(saved)
        self._write_articles(identity, articles)
        logger.info("article_saved", identity=identity, article_id=saved.id, topic=article.topic)

        stats_recorded = True
        try:
            self._record_stats(identity, article.topic, article.level)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            stats_recorded = False
            logger.warning(
                "stats_update_failed", identity=identity, article_id=saved.id, error=str(e)
            )
        return SaveResult(article=saved, stats_recorded=stats_recorded)

    async def _list_articles(self, identity: str) -> list[SavedArticle]:
        return list(reversed(self.read_articles(identity)))

    async def _delete_article(self, identity: str, article_id: str) -> None:
        articles = self.read_articles(identity)
        remaining = [a for a in articles if a.id != article_id]
        if len(remaining) == len(articles):
            logger.info("article_delete_noop", identity=identity, article_id=article_id)
            return
        self._write_articles(identity, remaining)
        logger.info("article_deleted", identity=identity, article_id=article_id)

    async def _get_stats(self, identity: str) -> UserStats:
        stats = self.store.get_json(stats_key(identity), {}) or {}
        articles = self.read_articles(identity)
        topic_counts = stats.get("topicCounts") or {}
        if topic_counts:
            favorites = rank_topics(topic_counts)
        else:
            favorites = list(stats.get("favoriteTopics") or [])
        levels: dict[str, int] = {}
        for a in articles:
            levels[a.level] = levels.get(a.level, 0) + 1
        extra = {"last_activity": stats["lastActivity"]} if stats.get("lastActivity") else {}
        return UserStats(
            total_articles=int(stats.get("totalArticles") or 0),
            favorite_topics=favorites,
            level_distribution=levels,
            **extra,
        )

    async def _get_settings(self, identity: str) -> UserSettings:
        stored = self.store.get_json(settings_key(identity))
        if not stored:
            return UserSettings()
        return UserSettings.model_validate(stored)

    async def _update_interface_language(
        self, identity: str, language: InterfaceLanguage
    ) -> None:
        try:
            current = self.store.get_json(settings_key(identity), {}) or {}
        except ValueError:
            current = {}
        self.store.set_json(settings_key(identity), {**current, "interfaceLanguage": language.value})
        logger.info("interface_language_updated", identity=identity, language=language.value)
