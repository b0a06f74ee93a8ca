"""User profile and interface settings models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Identity(StrEnum):
    """Learner slots managed by this deployment."""

    USER1 = "user1"
    USER2 = "user2"


class InterfaceLanguage(StrEnum):
    """Languages the UI string tables are available in."""

    SPANISH = "spanish"
    ENGLISH = "english"
    JAPANESE = "japanese"


DEFAULT_INTERFACE_LANGUAGE = InterfaceLanguage.SPANISH


def utcnow() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time in the fixed-width ISO form written to the backend."""
    return utcnow().isoformat(timespec="microseconds")


class UserProfile(BaseModel):
    """Durable per-identity record as stored in the ``user_profiles`` table."""

    id: str
    user_type: str
    name: str
    description: str = ""
    interface_language: InterfaceLanguage = DEFAULT_INTERFACE_LANGUAGE
    total_articles: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    interface_language: InterfaceLanguage = DEFAULT_INTERFACE_LANGUAGE
