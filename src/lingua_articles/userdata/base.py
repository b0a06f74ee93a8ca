"""Shared contract for the backend-backed and legacy local user data managers.

Every public operation carries an explicit failure mode:

* ``fail_soft`` reads log the error and return an empty/zero default.
* ``fail_loud`` writes raise, converting unexpected store errors into the
  operation's own error type so callers can show a specific message.
"""

import abc
import functools
from collections.abc import Callable
from typing import Any

import structlog

from lingua_articles.errors import (
    ArticleDeleteFailed,
    ArticleSaveFailed,
    LinguaDataError,
    ProfileCreationFailed,
    SettingsUpdateFailed,
    StoreUnavailable,
    UnknownInterfaceLanguage,
)
from lingua_articles.models.article import ArticleInput, SavedArticle, SaveResult, UserStats
from lingua_articles.models.user_profile import InterfaceLanguage, UserProfile, UserSettings

logger = structlog.get_logger()

# Errors a fail-soft read swallows. ValueError covers corrupt JSON and
# validation errors; the rest cover well-formed JSON of the wrong shape.
_SOFT_ERRORS = (LinguaDataError, ValueError, OSError, TypeError, AttributeError, KeyError)

# Errors that keep their own type when a fail-loud operation re-raises.
_PASSTHROUGH = (StoreUnavailable, ProfileCreationFailed)


def fail_soft(default_factory: Callable[[], Any]):
    """Tag a read operation as fail-soft."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, identity: str, *args, **kwargs):
            try:
                return await func(self, identity, *args, **kwargs)
            except _SOFT_ERRORS as e:
                logger.error(
                    f"{func.__name__}_failed",
                    identity=identity,
                    error=str(e),
                    exc_info=True,
                )
                return default_factory()

        wrapper.failure_mode = "fail_soft"
        return wrapper

    return decorator


def fail_loud(error_cls: type[LinguaDataError]):
    """Tag a write operation as fail-loud, raising ``error_cls``."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, identity: str, *args, **kwargs):
            try:
                return await func(self, identity, *args, **kwargs)
            except (error_cls, *_PASSTHROUGH) as e:
                logger.error(f"{func.__name__}_failed", identity=identity, error=str(e))
                raise
            except (LinguaDataError, OSError) as e:
                logger.error(f"{func.__name__}_failed", identity=identity, error=str(e))
                raise error_cls(str(e)) from e

        wrapper.failure_mode = "fail_loud"
        wrapper.error_type = error_cls
        return wrapper

    return decorator


def parse_language(language: str) -> InterfaceLanguage:
    try:
        return InterfaceLanguage(language)
    except ValueError:
        raise UnknownInterfaceLanguage(f"Unknown interface language: {language!r}") from None


class UserDataManager(abc.ABC):
    """Per-identity article, statistics and settings access.

    Subclasses implement the underscored hooks; the public methods apply
    the failure policy.
    """

    @fail_loud(ProfileCreationFailed)
    async def ensure_profile(self, identity: str) -> UserProfile:
        return await self._ensure_profile(identity)

    @fail_loud(ArticleSaveFailed)
    async def save_article(self, identity: str, article: ArticleInput) -> SaveResult:
        """Store an article, then update statistics.

        A statistics failure after the article is stored is logged and
        reported through ``SaveResult.stats_recorded``; it does not undo the
        save.
        """
        return await self._save_article(identity, article)

    @fail_soft(list)
    async def list_articles(self, identity: str) -> list[SavedArticle]:
        """Articles owned by ``identity``, newest first."""
        return await self._list_articles(identity)

    @fail_loud(ArticleDeleteFailed)
    async def delete_article(self, identity: str, article_id: str) -> None:
        """Delete one of the caller's own articles. Unknown ids are ignored."""
        await self._delete_article(identity, article_id)

    @fail_soft(UserStats)
    async def get_stats(self, identity: str) -> UserStats:
        return await self._get_stats(identity)

    @fail_soft(UserSettings)
    async def get_settings(self, identity: str) -> UserSettings:
        return await self._get_settings(identity)

    @fail_loud(SettingsUpdateFailed)
    async def update_interface_language(
        self, identity: str, language: InterfaceLanguage | str
    ) -> None:
        """Raises UnknownInterfaceLanguage before touching the store."""
        await self._update_interface_language(identity, parse_language(language))

    async def aclose(self) -> None:
        """Release backend resources. Default: nothing to release."""

    @abc.abstractmethod
    async def _ensure_profile(self, identity: str) -> UserProfile: ...

    @abc.abstractmethod
    async def _save_article(self, identity: str, article: ArticleInput) -> SaveResult: ...

    @abc.abstractmethod
    async def _list_articles(self, identity: str) -> list[SavedArticle]: ...

    @abc.abstractmethod
    async def _delete_article(self, identity: str, article_id: str) -> None: ...

    @abc.abstractmethod
    async def _get_stats(self, identity: str) -> UserStats: ...

    @abc.abstractmethod
    async def _get_settings(self, identity: str) -> UserSettings: ...

    @abc.abstractmethod
    async def _update_interface_language(
        self, identity: str, language: InterfaceLanguage
    ) -> None: ...
