"""Saved article persistence scoped to a user profile."""

import structlog

from lingua_articles.errors import ArticleSaveFailed, LinguaDataError, StoreRejected
from lingua_articles.models.article import (
    ArticleContent,
    ArticleInput,
    SavedArticle,
    SaveResult,
)
from lingua_articles.storage.remote import RemoteStore, Row
from lingua_articles.userdata.profiles import ProfileResolver
from lingua_articles.userdata.stats import ARTICLES_TABLE, StatisticsAggregator

logger = structlog.get_logger()


def article_from_row(row: Row, identity: str) -> SavedArticle:
    return SavedArticle(
        id=str(row["id"]),
        topic=row["topic"],
        level=row["level"],
        content=ArticleContent(
            article=row["article_content"],
            vocabulary=row.get("vocabulary") or [],
        ),
        timestamp=row["created_at"],
        user_id=identity,
    )


class ArticleRepository:
    """Save, list and delete articles, denormalizing content into the row.

    Args:
        store: Backend query client.
        profiles: Resolves the owning profile before every operation.
        stats: Notified after each successful insert.
    """

    def __init__(
        self,
        store: RemoteStore,
        profiles: ProfileResolver,
        stats: StatisticsAggregator,
    ):
        self.store = store
        self.profiles = profiles
        self.stats = stats

    async def save(self, identity: str, article: ArticleInput) -> SaveResult:
        """Insert the article, then record statistics for it.

        Raises:
            ProfileCreationFailed, StoreUnavailable: Profile resolution failed.
            ArticleSaveFailed: The insert was rejected.
        """
        profile = await self.profiles.ensure(identity)
        try:
            row = await self.store.insert(
                ARTICLES_TABLE,
                {
                    "user_id": profile.id,
                    "topic": article.topic,
                    "level": article.level,
                    "article_content": article.content.article,
                    "vocabulary": [
                        v.model_dump(exclude_none=True) for v in article.content.vocabulary
                    ],
                },
            )
        except StoreRejected as e:
            raise ArticleSaveFailed(f"Failed to save article: {e}") from e
        saved = article_from_row(row, identity)
        logger.info("article_saved", identity=identity, article_id=saved.id, topic=article.topic)

        stats_recorded = True
        try:
            await self.stats.record_article(identity, article.topic, article.level)
        except LinguaDataError as e:
            # The article stays; statistics undercount until the next save.
            stats_recorded = False
            logger.warning(
                "stats_update_failed", identity=identity, article_id=saved.id, error=str(e)
            )
        return SaveResult(article=saved, stats_recorded=stats_recorded)

    async def list(self, identity: str) -> list[SavedArticle]:
        profile = await self.profiles.ensure(identity)
        rows = await self.store.select(
            ARTICLES_TABLE,
            filters={"user_id": profile.id},
            order_by="created_at",
            ascending=False,
        )
        return [article_from_row(row, identity) for row in rows]

    async def delete(self, identity: str, article_id: str) -> None:
        """Delete by (article id, owning profile id); missing or foreign ids are a no-op."""
        profile = await self.profiles.ensure(identity)
        removed = await self.store.delete(
            ARTICLES_TABLE, filters={"id": article_id, "user_id": profile.id}
        )
        if removed:
            logger.info("article_deleted", identity=identity, article_id=article_id)
        else:
            logger.info("article_delete_noop", identity=identity, article_id=article_id)
