"""
Readable article extraction.

Two interchangeable backends implement the Extractor interface:
1. readability: Mozilla's readability algorithm via readability-lxml, with
   trafilatura supplying page metadata (byline, site name, description)
2. node: pipes the page into an external `node readability.js <url>`
   process and reads the article back as JSON on stdout

Both raise ExtractionError on failure and honour task cancellation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
import json
import logging
from typing import Any

from bs4 import BeautifulSoup, UnicodeDammit
from readability import Document
import trafilatura

from ..config import ExtractConfig
from ..core.errors import ExtractionError
from ..core.types import Article

logger = logging.getLogger(__name__)


class Extractor(ABC):
    """Turns a fetched HTML page into an Article."""

    @abstractmethod
    async def extract(self, url: str, html: bytes) -> Article:
        """Return the readable article for ``html`` fetched from ``url``.

        Raises:
            ExtractionError: if the page cannot be parsed or has no content
        """
        raise NotImplementedError


class ReadabilityExtractor(Extractor):
    """In-process extraction with readability-lxml.

    Parsing is CPU bound, so it runs in a worker thread bounded by
    ``timeout`` seconds.
    """

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    async def extract(self, url: str, html: bytes) -> Article:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.extract_sync, url, html), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise ExtractionError(f"extraction timed out after {self.timeout}s", url) from exc

    def extract_sync(self, url: str, html: bytes) -> Article:
        markup = UnicodeDammit(html, is_html=True).unicode_markup
        if not markup or not markup.strip():
            raise ExtractionError("empty document", url)

        try:
            doc = Document(markup, url=url)
            content = doc.summary(html_partial=True)
            title = doc.short_title()
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(f"readability failed: {type(exc).__name__}: {exc}", url) from exc

        text = _html_to_text(content)
        if not text:
            raise ExtractionError("no readable content", url)

        metadata = trafilatura.extract_metadata(markup, default_url=url)
        return Article(
            title=title or _meta(metadata, "title"),
            byline=_meta(metadata, "author"),
            content=content,
            text_content=text,
            length=len(text),
            excerpt=_meta(metadata, "description") or _first_paragraph(content),
            site_name=_meta(metadata, "sitename"),
        )


class NodeExtractor(Extractor):
    """Extraction through an external readability.js process.

    The page is written to the process's stdin and a single JSON object with
    the Readability.parse() fields is read from stdout.
    """

    def __init__(self, script: str, node_binary: str = "node", timeout: float = 60.0):
        self.script = script
        self.node_binary = node_binary
        self.timeout = timeout

    async def extract(self, url: str, html: bytes) -> Article:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.node_binary,
                self.script,
                url,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExtractionError(f"cannot start {self.node_binary}: {exc}", url) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(html), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await _kill(proc)
            raise ExtractionError(f"extraction timed out after {self.timeout}s", url) from exc
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ExtractionError(f"readability.js exited with {proc.returncode}: {message}", url)

        return _parse_node_output(stdout, url)


def create_extractor(cfg: ExtractConfig) -> Extractor:
    """Build the extractor selected by ``cfg.backend``."""
    name = cfg.backend.lower().strip()
    if name == "readability":
        return ReadabilityExtractor(timeout=cfg.timeout_seconds)
    if name == "node":
        return NodeExtractor(cfg.node_script, node_binary=cfg.node_binary, timeout=cfg.timeout_seconds)
    raise ValueError(f"Unsupported extract backend: {cfg.backend}. Supported: node, readability")


def _parse_node_output(stdout: bytes, url: str) -> Article:
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"malformed extractor output: {exc}", url) from exc
    # Readability.parse() returns null when it finds no article.
    if not isinstance(data, dict):
        raise ExtractionError("extractor returned no article", url)

    try:
        length = int(data.get("length") or 0)
    except (TypeError, ValueError) as exc:
        raise ExtractionError(f"malformed length {data.get('length')!r}", url) from exc

    return Article(
        title=_str(data.get("title")),
        byline=_str(data.get("byline")),
        content=_str(data.get("content")),
        text_content=_str(data.get("textContent")),
        length=length,
        excerpt=_str(data.get("excerpt")),
        site_name=_str(data.get("siteName")),
    )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
        await proc.wait()


def _html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator="\n")
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def _first_paragraph(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for p in soup.find_all("p"):
        text = p.get_text(strip=True)
        if text:
            return text
    return ""


def _meta(metadata: Any, name: str) -> str:
    if metadata is None:
        return ""
    if isinstance(metadata, dict):
        return _str(metadata.get(name))
    return _str(getattr(metadata, name, None))


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
