"""
Core data types for url_reader.

- Article: Readable content produced by an extractor
- URLRecord: One stored URL with its raw body and extracted article fields
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Article:
    """Structured article returned by an extractor.

    Attributes:
        title: Article headline
        byline: Author line, empty when unknown
        content: Simplified article HTML
        text_content: Plain text of the article body
        length: Number of characters in text_content
        excerpt: Short description or first paragraph
        site_name: Publication name, empty when unknown
    """
    title: str = ""
    byline: str = ""
    content: str = ""
    text_content: str = ""
    length: int = 0
    excerpt: str = ""
    site_name: str = ""


@dataclass
class URLRecord:
    """A persisted URL and its extracted article.

    Attributes:
        id: Store-assigned, monotonically increasing identifier
        url: Canonical URL, unique across the store
        original_content: Raw response body as fetched
        created_at: When the record was first stored
        updated_at: When the record was last refreshed
    """
    id: int
    url: str
    original_content: str = ""
    title: str = ""
    content: str = ""
    text_content: str = ""
    length: int = 0
    excerpt: str = ""
    byline: str = ""
    site_name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def apply_article(self, article: Article) -> None:
        """Overwrite the extracted fields with a fresh article."""
        self.title = article.title
        self.content = article.content
        self.text_content = article.text_content
        self.length = article.length
        self.excerpt = article.excerpt
        self.byline = article.byline
        self.site_name = article.site_name
