"""couchstore exceptions."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for store and backend errors."""


class ConnectionError(StoreError):
    """Raised when the document database cannot be reached."""


class DocumentNotFoundError(StoreError):
    """Raised when a requested document, view or database does not exist."""

    def __init__(self, message: str, doc_id: str | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.doc_id = doc_id
        self.reason = reason


class QueryError(StoreError):
    """Raised when a view query fails or a response cannot be interpreted."""


class ConfigurationError(StoreError):
    """Raised when store configuration is invalid."""
