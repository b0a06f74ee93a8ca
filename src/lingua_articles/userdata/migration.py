"""One-shot transfer of legacy local articles into the durable backend."""

from collections.abc import Iterable
from enum import StrEnum

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from lingua_articles.errors import LinguaDataError, MigrationFailed
from lingua_articles.models.user_profile import Identity
from lingua_articles.userdata.base import UserDataManager
from lingua_articles.userdata.local_manager import LocalUserDataManager

logger = structlog.get_logger()


class MigrationStatus(StrEnum):
    NO_LEGACY_DATA = "no_legacy_data"
    MIGRATED = "migrated"


class MigrationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    identity: str
    status: MigrationStatus
    migrated: int = 0
    # Saves whose statistics update failed after the article was stored
    stats_incomplete: int = 0


class MigrationCoordinator:
    """Drains legacy articles through the target's normal save path.

    Delivery is at-least-once: the legacy keys are only removed after every
    entry saved, and nothing is deduplicated, so re-running after a partial
    failure saves the already-migrated entries again.

    Args:
        legacy: Local-only manager owning the legacy keys.
        target: Manager the articles are saved into.
    """

    def __init__(self, legacy: LocalUserDataManager, target: UserDataManager):
        self.legacy = legacy
        self.target = target

    def has_legacy_data(self, identity: str) -> bool:
        """Only the presence of the legacy articles key counts."""
        return self.legacy.has_articles(identity)

    def pending(self, identities: Iterable[str] = tuple(Identity)) -> list[str]:
        return [str(i) for i in identities if self.has_legacy_data(i)]

    async def migrate_legacy_data(self, identity: str) -> MigrationResult:
        """Save every legacy entry for ``identity`` in stored order, then clear the keys.

        Raises:
            MigrationFailed: An entry could not be read or saved, or the
                legacy keys could not be removed. Keys are kept in the first
                two cases.
        """
        if not self.has_legacy_data(identity):
            logger.info("migration_skipped_no_data", identity=identity)
            return MigrationResult(identity=identity, status=MigrationStatus.NO_LEGACY_DATA)

        try:
            entries = self.legacy.read_articles(identity)
        except (OSError, ValueError, TypeError) as e:
            raise MigrationFailed(identity, 0, 0, f"unreadable legacy data: {e}") from e

        logger.info("migration_started", identity=identity, entries=len(entries))
        stats_incomplete = 0
        for index, entry in enumerate(entries):
            try:
                result = await self.target.save_article(identity, entry.to_input())
            except LinguaDataError as e:
                logger.error(
                    "migration_failed",
                    identity=identity,
                    migrated=index,
                    failed_index=index,
                    error=str(e),
                )
                raise MigrationFailed(identity, index, index, str(e)) from e
            if not result.stats_recorded:
                stats_incomplete += 1

        try:
            self.legacy.clear(identity)
        except OSError as e:
            # Everything was saved; a retry would duplicate all of it.
            raise MigrationFailed(
                identity, len(entries), len(entries), f"clearing legacy keys: {e}"
            ) from e

        logger.info("migration_completed", identity=identity, migrated=len(entries))
        return MigrationResult(
            identity=identity,
            status=MigrationStatus.MIGRATED,
            migrated=len(entries),
            stats_incomplete=stats_incomplete,
        )

    async def migrate_all(
        self, identities: Iterable[str] = tuple(Identity)
    ) -> list[MigrationResult]:
        """Migrate each identity in turn; the first failure stops the run."""
        return [await self.migrate_legacy_data(str(i)) for i in identities]
