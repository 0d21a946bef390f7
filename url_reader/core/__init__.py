"""
Core domain models and business logic.

This package contains the URL canonicalizer, the short ID codec, the
record types and the error taxonomy. The ingestion orchestrator lives in
`url_reader.core.ingest`.
"""

from .clearurl import DEFAULT_RULES, CleanRules, build_rules, clean
from .errors import (
    ExtractionError,
    FetchError,
    NotFoundError,
    PersistenceError,
    ReaderError,
    UniqueViolation,
    ValidationError,
)
from .shortid import DEFAULT_ALPHABET, ShortIDCodec, decode, encode
from .types import Article, URLRecord

__all__ = [
    "Article",
    "URLRecord",
    "CleanRules",
    "DEFAULT_RULES",
    "build_rules",
    "clean",
    "ShortIDCodec",
    "DEFAULT_ALPHABET",
    "encode",
    "decode",
    "ReaderError",
    "ValidationError",
    "NotFoundError",
    "FetchError",
    "ExtractionError",
    "PersistenceError",
    "UniqueViolation",
]
