"""UserDataManager backed by the hosted table store."""

from collections.abc import Mapping

from lingua_articles.models.article import ArticleInput, SavedArticle, SaveResult, UserStats
from lingua_articles.models.user_profile import InterfaceLanguage, UserProfile, UserSettings
from lingua_articles.storage.remote import RemoteStore
from lingua_articles.userdata.articles import ArticleRepository
from lingua_articles.userdata.base import UserDataManager
from lingua_articles.userdata.profiles import ProfileResolver
from lingua_articles.userdata.stats import StatisticsAggregator


class RemoteUserDataManager(UserDataManager):
    """Composes profile resolution, article storage and statistics over one store.

    Args:
        store: Backend query client; closed by ``aclose`` when it supports it.
        profile_defaults: Optional identity -> display name/description table.
    """

    def __init__(
        self,
        store: RemoteStore,
        profile_defaults: Mapping[str, Mapping[str, str]] | None = None,
    ):
        self.store = store
        self.profiles = ProfileResolver(store, profile_defaults)
        self.stats = StatisticsAggregator(store, self.profiles)
        self.articles = ArticleRepository(store, self.profiles, self.stats)

    async def _ensure_profile(self, identity: str) -> UserProfile:
        return await self.profiles.ensure(identity)

    async def _save_article(self, identity: str, article: ArticleInput) -> SaveResult:
        return await self.articles.save(identity, article)

    async def _list_articles(self, identity: str) -> list[SavedArticle]:
        return await self.articles.list(identity)

    async def _delete_article(self, identity: str, article_id: str) -> None:
        await self.articles.delete(identity, article_id)

    async def _get_stats(self, identity: str) -> UserStats:
        return await self.stats.get_stats(identity)

    async def _get_settings(self, identity: str) -> UserSettings:
        profile = await self.profiles.ensure(identity)
        return UserSettings(interface_language=profile.interface_language)

    async def _update_interface_language(
        self, identity: str, language: InterfaceLanguage
    ) -> None:
        profile = await self.profiles.ensure(identity)
        await self.profiles.set_interface_language(profile, language)

    async def aclose(self) -> None:
        close = getattr(self.store, "aclose", None)
        if close is not None:
            await close()
