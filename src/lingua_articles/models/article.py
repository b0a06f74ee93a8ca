"""Saved article, vocabulary and statistics models.

Models that cross the legacy local store or the HTTP surface serialize with
camelCase aliases (``userId``, ``totalArticles``...), which is the shape the
browser client has always persisted.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lingua_articles.models.user_profile import utcnow


class VocabularyEntry(BaseModel):
    word: str
    meaning: str
    reading: str | None = None  # furigana / pronunciation hint


class ArticleContent(BaseModel):
    """Generated body text and its ordered vocabulary list."""

    article: str
    vocabulary: list[VocabularyEntry] = Field(default_factory=list)


class ArticleInput(BaseModel):
    """What a caller hands to ``save_article``."""

    topic: str
    level: str
    content: ArticleContent


class SavedArticle(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    topic: str
    level: str
    content: ArticleContent
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: str | None = None

    def to_input(self) -> ArticleInput:
        return ArticleInput(topic=self.topic, level=self.level, content=self.content)


class FavoriteTopic(BaseModel):
    """Row of the ``favorite_topics`` table, unique per (user_id, topic)."""

    id: str
    user_id: str
    topic: str
    count: int = 1
    updated_at: datetime = Field(default_factory=utcnow)


class UserStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_articles: int = 0
    favorite_topics: list[str] = Field(default_factory=list)
    level_distribution: dict[str, int] = Field(default_factory=dict)
    last_activity: datetime = Field(default_factory=utcnow)


class SaveResult(BaseModel):
    """Outcome of a save.

    ``stats_recorded`` is False when the article was stored but the
    statistics update that follows it failed. The article is not rolled back.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    article: SavedArticle
    stats_recorded: bool = True
