"""
Error taxonomy for a sync run.

Only ConfigError is fatal. FetchError and CardImportError are isolated to one
document or one candidate and aggregated into the run summary.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notion_anki.schemas import FlashcardCandidate


class SyncError(Exception):
    """Base class for sync errors."""

    pass


class ConfigError(SyncError):
    """Required configuration is missing or invalid."""

    pass


class FetchError(SyncError):
    """A document (or the document listing) could not be fetched."""

    def __init__(self, message: str, document_id: str | None = None):
        super().__init__(message)
        self.document_id = document_id


class AnkiConnectError(SyncError):
    """AnkiConnect answered with a non-null ``error`` field."""

    def __init__(self, action: str, error: str):
        super().__init__(f"AnkiConnect {action} failed: {error}")
        self.action = action
        self.error = error

    @property
    def is_duplicate(self) -> bool:
        return "duplicate" in self.error.lower()


class CardImportError(SyncError):
    """A single candidate could not be imported."""

    def __init__(self, message: str, candidate: "FlashcardCandidate | None" = None):
        super().__init__(message)
        self.candidate = candidate
