"""Build the configured UserDataManager and migration coordinator."""

import structlog

from lingua_articles.config import Settings, load_profile_defaults
from lingua_articles.storage.local_store import LocalStore
from lingua_articles.storage.memory import MemoryStore
from lingua_articles.storage.remote import PostgrestStore
from lingua_articles.userdata.base import UserDataManager
from lingua_articles.userdata.local_manager import LocalUserDataManager
from lingua_articles.userdata.migration import MigrationCoordinator
from lingua_articles.userdata.remote_manager import RemoteUserDataManager

logger = structlog.get_logger()


def build_local_manager(settings: Settings) -> LocalUserDataManager:
    return LocalUserDataManager(LocalStore(settings.local_store_path), load_profile_defaults())


def build_user_data_manager(settings: Settings) -> UserDataManager:
    """Select the implementation named by ``settings.backend``."""
    if settings.backend == "local":
        manager: UserDataManager = build_local_manager(settings)
    elif settings.backend == "postgrest":
        if not settings.backend_url:
            raise ValueError("backend_url is required for the postgrest backend")
        store = PostgrestStore(
            settings.backend_url,
            api_key=settings.backend_key,
            timeout=settings.backend_timeout_seconds,
        )
        manager = RemoteUserDataManager(store, load_profile_defaults())
    else:
        manager = RemoteUserDataManager(MemoryStore(), load_profile_defaults())
    logger.info("user_data_manager_built", backend=settings.backend)
    return manager


def build_migration_coordinator(
    settings: Settings, target: UserDataManager
) -> MigrationCoordinator | None:
    """None when the target is itself the legacy store."""
    if settings.backend == "local":
        return None
    return MigrationCoordinator(build_local_manager(settings), target)
