"""Per-user statistics: article counter, favourite topics, level distribution."""

from collections import Counter

import structlog

from lingua_articles.models.article import UserStats
from lingua_articles.models.user_profile import now_iso
from lingua_articles.storage.remote import RemoteStore
from lingua_articles.userdata.profiles import ProfileResolver

logger = structlog.get_logger()

FAVORITE_TOPICS_TABLE = "favorite_topics"
ARTICLES_TABLE = "saved_articles"

# Favourite topics returned by get_stats
TOP_TOPICS = 10


class StatisticsAggregator:
    """Maintains counters on save and aggregates on read.

    The article counter and topic counts are updated on write. The level
    distribution is counted from the stored articles on every read, so it
    always reflects the articles that exist at query time.

    Args:
        store: Backend query client.
        profiles: Resolver shared with the article repository.
    """

    def __init__(self, store: RemoteStore, profiles: ProfileResolver):
        self.store = store
        self.profiles = profiles

    async def record_article(self, identity: str, topic: str, level: str) -> None:
        """Count one saved article for ``identity``.

        Both updates are read-then-write with no concurrency control.
        """
        profile = await self.profiles.ensure(identity)
        await self.profiles.increment_article_count(profile)

        existing = await self.store.select(
            FAVORITE_TOPICS_TABLE,
            filters={"user_id": profile.id, "topic": topic},
            limit=1,
        )
        if existing:
            entry = existing[0]
            await self.store.update(
                FAVORITE_TOPICS_TABLE,
                {"count": entry["count"] + 1, "updated_at": now_iso()},
                filters={"id": entry["id"]},
            )
        else:
            await self.store.insert(
                FAVORITE_TOPICS_TABLE,
                {"user_id": profile.id, "topic": topic, "count": 1, "updated_at": now_iso()},
            )
        logger.debug("stats_recorded", identity=identity, topic=topic, level=level)

    async def favorite_topics(self, profile_id: str, limit: int = TOP_TOPICS) -> list[str]:
        """Topics by descending count; equal counts put the most recently used first."""
        rows = await self.store.select(
            FAVORITE_TOPICS_TABLE,
            filters={"user_id": profile_id},
            columns="topic,count,updated_at",
            order_by=("count", "updated_at"),
            ascending=False,
            limit=limit,
        )
        return [row["topic"] for row in rows]

    async def level_distribution(self, profile_id: str) -> dict[str, int]:
        rows = await self.store.select(
            ARTICLES_TABLE, filters={"user_id": profile_id}, columns="level"
        )
        return dict(Counter(row["level"] for row in rows))

    async def get_stats(self, identity: str) -> UserStats:
        profile = await self.profiles.ensure(identity)
        return UserStats(
            total_articles=profile.total_articles,
            favorite_topics=await self.favorite_topics(profile.id),
            level_distribution=await self.level_distribution(profile.id),
            last_activity=profile.updated_at,
        )
