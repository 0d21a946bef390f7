"""
Ingestion orchestration.

Adding a URL walks these states:
1. Canonicalize the raw URL (tracking parameters, redirect rewrites)
2. Look the canonical URL up in the store; a hit is returned unchanged
3. On a miss: fetch the page, extract the readable article, persist it

Refreshing an existing record repeats steps 3 for its stored URL and
overwrites the record in place.

There is no in-process locking. Two concurrent adds of the same unseen URL
may both fetch and extract; the store's uniqueness constraint lets exactly
one insert win and the other re-reads the winner.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

from ..fetch.extractor import Extractor
from ..fetch.fetcher import FetchResult, HTTPFetcher
from ..store.sqlite import URLStore
from ..utils.logging import log_event, truncate_text
from .clearurl import DEFAULT_RULES, CleanRules, clean
from .errors import FetchError, NotFoundError, UniqueViolation, ValidationError
from .shortid import DEFAULT_CODEC, ShortIDCodec
from .types import Article, URLRecord

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"[0-9]+")


class Reader:
    """Coordinates canonicalization, dedup, fetch, extraction and storage.

    Args:
        store: Record store with a unique constraint on the canonical URL
        fetcher: Object with an async ``fetch(url) -> FetchResult``
        extractor: Extractor turning fetched HTML into an Article
        codec: Short ID codec used at the public boundary
        rules: Canonicalization rule tables
    """

    def __init__(
        self,
        store: URLStore,
        fetcher: HTTPFetcher,
        extractor: Extractor,
        codec: ShortIDCodec = DEFAULT_CODEC,
        rules: CleanRules = DEFAULT_RULES,
    ):
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.codec = codec
        self.rules = rules

    async def add_url(self, raw_url: str) -> URLRecord:
        """Store ``raw_url`` once and return its record.

        An already stored canonical URL is returned without fetching again.

        Raises:
            ValidationError: if the URL is not an absolute http(s) URL
            FetchError: if the page cannot be fetched
            ExtractionError: if no readable article can be extracted
            PersistenceError: if the store fails
        """
        url = clean(_validate_url(raw_url), self.rules)

        try:
            record = self.store.find_by_url(url)
        except NotFoundError:
            pass
        else:
            log_event(logger, "url_found", record_id=record.id, url=url)
            return record

        original_content, article = await self._fetch_article(url)

        try:
            record = self.store.create(url, article, original_content)
        except UniqueViolation:
            # Lost a race with a concurrent add of the same URL.
            record = self.store.find_by_url(url)
            log_event(logger, "url_conflict_resolved", record_id=record.id, url=url)
            return record

        log_event(
            logger,
            "url_added",
            record_id=record.id,
            short_id=self.short_id(record),
            url=url,
            title=truncate_text(record.title),
        )
        return record

    async def update_url(self, identifier: str) -> URLRecord:
        """Re-fetch and re-extract the record named by ``identifier``.

        ``identifier`` is either a decimal record ID or a short ID.

        Raises:
            ValidationError: if the identifier cannot be resolved
            NotFoundError: if no record has that ID
        """
        record = self.get(identifier)
        url = clean(record.url, self.rules)

        original_content, article = await self._fetch_article(url)

        record.url = url
        record.original_content = original_content
        record.apply_article(article)
        self.store.save(record)

        log_event(logger, "url_updated", record_id=record.id, url=url)
        return record

    async def backfill_original_content(self) -> list[int]:
        """Fetch the raw body for records stored without one.

        Returns:
            IDs of the records that were updated
        """
        updated: list[int] = []
        for record in self.store.missing_original_content():
            logger.info("getting... %d %s", record.id, record.url)
            result = await self._fetch(record.url)
            record.original_content = result.text or ""
            self.store.save(record)
            updated.append(record.id)
        return updated

    def resolve_id(self, identifier: str) -> int:
        """Turn a decimal ID or a short ID into a record ID."""
        identifier = identifier.strip()
        if _DIGITS_RE.fullmatch(identifier):
            record_id = int(identifier)
            if record_id > self.codec.max_id:
                raise ValidationError(f"id {identifier} is out of range")
            return record_id
        return self.codec.decode(identifier)

    def get(self, identifier: str) -> URLRecord:
        return self.store.find_by_id(self.resolve_id(identifier))

    def short_id(self, record: URLRecord) -> str:
        return self.codec.encode(record.id)

    async def _fetch(self, url: str) -> FetchResult:
        result = await self.fetcher.fetch(url)
        if result.status_code is None:
            raise FetchError(f"fetch failed: {result.error}", url)
        if not result.ok:
            raise FetchError(
                f"failed with {result.status_code}", url, status_code=result.status_code
            )
        return result

    async def _fetch_article(self, url: str) -> tuple[str, Article]:
        result = await self._fetch(url)
        article = await self.extractor.extract(url, result.content or b"")
        return result.text or "", article


def _validate_url(raw_url: str) -> str:
    url = raw_url.strip()
    try:
        parts = urlsplit(url)
        parts.port
    except ValueError as exc:
        raise ValidationError(f"malformed URL: {exc}", url) from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError("URL must be an absolute http:// or https:// URL", url)
    return url
