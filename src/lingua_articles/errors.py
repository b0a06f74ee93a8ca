"""Error taxonomy for the user data layer."""


class LinguaDataError(Exception):
    """Base class for every data-access failure raised by this package."""


class StoreUnavailable(LinguaDataError):
    """The backend could not be reached (transport, DNS, timeout)."""


class StoreRejected(LinguaDataError):
    """The backend answered but refused the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProfileCreationFailed(LinguaDataError):
    pass


class ArticleSaveFailed(LinguaDataError):
    pass


class ArticleDeleteFailed(LinguaDataError):
    pass


class SettingsUpdateFailed(LinguaDataError):
    pass


class MigrationFailed(LinguaDataError):
    """A legacy article could not be saved; the legacy keys were kept.

    Args:
        identity: Identity whose legacy data was being migrated.
        migrated: Number of entries saved before the failure.
        failed_index: Zero-based position of the failing entry.
    """

    def __init__(self, identity: str, migrated: int, failed_index: int, reason: str):
        super().__init__(
            f"Migration for {identity} failed at entry {failed_index} "
            f"after {migrated} saved: {reason}"
        )
        self.identity = identity
        self.migrated = migrated
        self.failed_index = failed_index


class UnknownInterfaceLanguage(ValueError):
    pass
