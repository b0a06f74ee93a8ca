"""Lazy per-identity profile resolution against the ``user_profiles`` table."""

from collections.abc import Mapping

import structlog

from lingua_articles.config import load_profile_defaults
from lingua_articles.errors import ProfileCreationFailed, StoreRejected
from lingua_articles.models.user_profile import (
    DEFAULT_INTERFACE_LANGUAGE,
    InterfaceLanguage,
    UserProfile,
    now_iso,
)
from lingua_articles.storage.remote import RemoteStore

logger = structlog.get_logger()

PROFILES_TABLE = "user_profiles"


class ProfileResolver:
    """Look up a profile by identity key, creating the default one if absent.

    Lookup-then-insert is not atomic: two sessions resolving the same new
    identity at once can both try to insert. The unique key on
    ``user_type`` makes the loser fail with ProfileCreationFailed rather than
    creating a duplicate.

    Args:
        store: Backend query client.
        profile_defaults: identity -> {"name", "description"}; read from
            config/profiles.yaml when omitted.
    """

    def __init__(
        self,
        store: RemoteStore,
        profile_defaults: Mapping[str, Mapping[str, str]] | None = None,
    ):
        self.store = store
        self.profile_defaults = (
            profile_defaults if profile_defaults is not None else load_profile_defaults()
        )

    def default_profile_row(self, identity: str) -> dict:
        entry = self.profile_defaults.get(identity, {})
        return {
            "user_type": identity,
            "name": entry.get("name", identity),
            "description": entry.get("description", ""),
            "interface_language": DEFAULT_INTERFACE_LANGUAGE.value,
            "total_articles": 0,
        }

    async def find(self, identity: str) -> UserProfile | None:
        rows = await self.store.select(
            PROFILES_TABLE, filters={"user_type": identity}, limit=1
        )
        return UserProfile.model_validate(rows[0]) if rows else None

    async def ensure(self, identity: str) -> UserProfile:
        """Return the identity's profile, inserting the default one first if needed.

        Raises:
            StoreUnavailable: The backend could not be reached.
            ProfileCreationFailed: The insert was rejected.
        """
        profile = await self.find(identity)
        if profile is not None:
            return profile

        try:
            row = await self.store.insert(PROFILES_TABLE, self.default_profile_row(identity))
        except StoreRejected as e:
            raise ProfileCreationFailed(f"Failed to create user profile: {e}") from e
        logger.info("profile_created", identity=identity, profile_id=row.get("id"))
        return UserProfile.model_validate(row)

    async def set_interface_language(
        self, profile: UserProfile, language: InterfaceLanguage
    ) -> None:
        await self.store.update(
            PROFILES_TABLE,
            {"interface_language": language.value, "updated_at": now_iso()},
            filters={"id": profile.id},
        )
        logger.info(
            "interface_language_updated", identity=profile.user_type, language=language.value
        )

    async def increment_article_count(self, profile: UserProfile) -> None:
        """Write ``total_articles + 1`` computed from ``profile``.

        The count is read-then-written without a version check; concurrent
        saves for one identity can lose an increment.
        """
        await self.store.update(
            PROFILES_TABLE,
            {"total_articles": profile.total_articles + 1, "updated_at": now_iso()},
            filters={"id": profile.id},
        )
