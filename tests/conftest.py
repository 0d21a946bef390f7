"""Shared fixtures: a temporary store and canned fetch/extract collaborators."""

from __future__ import annotations

import pytest

from url_reader.core.errors import ExtractionError
from url_reader.core.ingest import Reader
from url_reader.core.types import Article
from url_reader.fetch.fetcher import FetchResult
from url_reader.store.sqlite import URLStore


class FakeFetcher:
    """Serves canned pages keyed by URL and records every request."""

    def __init__(self, pages: dict[str, tuple[int, bytes]] | None = None):
        self.pages = dict(pages or {})
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        if url not in self.pages:
            return FetchResult(url=url, status_code=None, content=None, text=None, error="ConnectError: unreachable")
        status, body = self.pages[url]
        return FetchResult(url=url, status_code=status, content=body, text=body.decode(), error=None)


class FakeExtractor:
    """Returns an article whose title is the page's <title>."""

    def __init__(self):
        self.calls: list[str] = []

    async def extract(self, url: str, html: bytes) -> Article:
        self.calls.append(url)
        text = html.decode()
        if "<title>" not in text:
            raise ExtractionError("no title", url)
        title = text.split("<title>", 1)[1].split("</title>", 1)[0]
        return Article(
            title=title,
            byline="Jane Doe",
            content=f"<div>{title}</div>",
            text_content=title,
            length=len(title),
            excerpt=title[:20],
            site_name="Example",
        )


@pytest.fixture
def store(tmp_path):
    url_store = URLStore(tmp_path / "reader.db")
    url_store.migrate()
    yield url_store
    url_store.close()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def reader(store, fetcher, extractor):
    return Reader(store=store, fetcher=fetcher, extractor=extractor)
