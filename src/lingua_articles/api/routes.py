"""REST API routes over the user data layer."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from lingua_articles.config import get_settings
from lingua_articles.errors import (
    LinguaDataError,
    MigrationFailed,
    ProfileCreationFailed,
    StoreUnavailable,
)
from lingua_articles.models.article import ArticleInput, SavedArticle, SaveResult, UserStats
from lingua_articles.models.user_profile import Identity, UserProfile, UserSettings
from lingua_articles.userdata.base import UserDataManager
from lingua_articles.userdata.factory import (
    build_migration_coordinator,
    build_user_data_manager,
)
from lingua_articles.userdata.migration import MigrationCoordinator, MigrationResult

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

_manager: UserDataManager | None = None
_coordinator: MigrationCoordinator | None = None


def get_user_data() -> UserDataManager:
    """Process-wide manager, built on first use from settings."""
    global _manager
    if _manager is None:
        _manager = build_user_data_manager(get_settings())
    return _manager


def get_migration() -> MigrationCoordinator | None:
    global _coordinator
    if _coordinator is None:
        _coordinator = build_migration_coordinator(get_settings(), get_user_data())
    return _coordinator


async def close_user_data() -> None:
    global _manager, _coordinator
    if _manager is not None:
        await _manager.aclose()
    _manager = None
    _coordinator = None


DataManager = Annotated[UserDataManager, Depends(get_user_data)]
Migration = Annotated[MigrationCoordinator | None, Depends(get_migration)]


def to_http_error(e: LinguaDataError) -> HTTPException:
    if isinstance(e, (StoreUnavailable, ProfileCreationFailed)):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, MigrationFailed):
        return HTTPException(
            status_code=502,
            detail={"message": str(e), "migrated": e.migrated, "failedIndex": e.failed_index},
        )
    return HTTPException(status_code=502, detail=str(e))


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/users/{identity}/profile")
async def get_profile(identity: Identity, data: DataManager) -> UserProfile:
    try:
        return await data.ensure_profile(identity)
    except LinguaDataError as e:
        raise to_http_error(e)


@router.get("/users/{identity}/articles")
async def list_articles(identity: Identity, data: DataManager) -> list[SavedArticle]:
    """Saved articles, newest first. Empty when the backend cannot be read."""
    return await data.list_articles(identity)


@router.post("/users/{identity}/articles", status_code=status.HTTP_201_CREATED)
async def save_article(
    identity: Identity, article: ArticleInput, data: DataManager
) -> SaveResult:
    try:
        return await data.save_article(identity, article)
    except LinguaDataError as e:
        raise to_http_error(e)


@router.delete(
    "/users/{identity}/articles/{article_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_article(identity: Identity, article_id: str, data: DataManager) -> Response:
    try:
        await data.delete_article(identity, article_id)
    except LinguaDataError as e:
        raise to_http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{identity}/stats")
async def get_stats(identity: Identity, data: DataManager) -> UserStats:
    return await data.get_stats(identity)


@router.get("/users/{identity}/settings")
async def get_user_settings(identity: Identity, data: DataManager) -> UserSettings:
    return await data.get_settings(identity)


@router.put("/users/{identity}/settings")
async def update_user_settings(
    identity: Identity, settings: UserSettings, data: DataManager
) -> UserSettings:
    try:
        await data.update_interface_language(identity, settings.interface_language)
    except LinguaDataError as e:
        raise to_http_error(e)
    return await data.get_settings(identity)


@router.get("/migration")
async def migration_status(migration: Migration) -> dict:
    """Identities that still have legacy local data to migrate."""
    if migration is None:
        return {"pending": []}
    return {"pending": migration.pending()}


@router.post("/users/{identity}/migration")
async def migrate(identity: Identity, migration: Migration) -> MigrationResult:
    if migration is None:
        raise HTTPException(
            status_code=409, detail="Migration is unavailable with the local backend"
        )
    try:
        return await migration.migrate_legacy_data(identity)
    except LinguaDataError as e:
        raise to_http_error(e)
