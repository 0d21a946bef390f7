"""
Error taxonomy for URL ingestion.

Every error raised by the core carries the URL (or identifier) that caused
it so callers can log a useful message without extra context:
- ValidationError: malformed input (short ID, identifier, URL)
- NotFoundError: no record for the given URL or ID
- FetchError: transport failure or non-success HTTP status
- ExtractionError: readability extraction failed or returned garbage
- PersistenceError: store I/O failure
- UniqueViolation: insert hit the URL uniqueness constraint
"""

from __future__ import annotations


class ReaderError(Exception):
    """Base class for all url_reader errors."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url

    def __str__(self) -> str:
        message = super().__str__()
        if self.url:
            return f"{message}, url={self.url}"
        return message


class ValidationError(ReaderError):
    """Raised for malformed short IDs, identifiers and input URLs."""


class NotFoundError(ReaderError):
    """Raised when no record exists for a URL or ID."""


class FetchError(ReaderError):
    """Raised when a page could not be fetched.

    Attributes:
        status_code: HTTP status of the response, or None when the request
            failed before a response was received
    """

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message, url)
        self.status_code = status_code


class ExtractionError(ReaderError):
    """Raised when the extractor fails or produces malformed output."""


class PersistenceError(ReaderError):
    """Raised when the store cannot read or write a record."""


class UniqueViolation(PersistenceError):
    """Insert conflicted with an existing canonical URL."""
