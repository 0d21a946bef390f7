"""Tests for article extraction backends."""

from __future__ import annotations

import asyncio
import os
import sys
import textwrap

import pytest

from url_reader.config import ExtractConfig
from url_reader.core.errors import ExtractionError
from url_reader.fetch import extractor as extractor_module
from url_reader.fetch.extractor import (
    NodeExtractor,
    ReadabilityExtractor,
    _parse_node_output,
    create_extractor,
)

PAGE = b"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Quiet Gardens</title>
  <meta name="author" content="Jane Doe">
  <meta name="description" content="How small gardens stay quiet.">
  <meta property="og:site_name" content="Example Site">
</head>
<body>
  <nav><a href="/">Home</a> <a href="/about">About</a></nav>
  <article>
    <h1>Quiet Gardens</h1>
    <p>Small urban gardens can be surprisingly quiet places when they are planted with
    dense hedges, climbing vines and a few well placed trees that absorb street noise.</p>
    <p>Gardeners who plan for sound as carefully as for colour often find that the
    garden becomes the most used room of the house, especially in the summer months.</p>
    <p>Water features add a gentle masking sound, and gravel paths make footsteps audible,
    which many people find reassuring in an enclosed space surrounded by buildings.</p>
  </article>
  <footer>Copyright Example Site</footer>
</body>
</html>
"""


def test_readability_extracts_article():
    article = asyncio.run(ReadabilityExtractor().extract("https://example.com/gardens", PAGE))

    assert "Quiet Gardens" in article.title
    assert "urban gardens" in article.text_content
    assert "Water features" in article.text_content
    assert "<p>" in article.content
    assert article.length == len(article.text_content)
    assert article.excerpt


def test_readability_maps_metadata(monkeypatch):
    metadata = {
        "title": "Meta Title",
        "author": "Jane Doe",
        "description": "How small gardens stay quiet.",
        "sitename": "Example Site",
    }
    monkeypatch.setattr(extractor_module.trafilatura, "extract_metadata", lambda *a, **kw: metadata)

    article = ReadabilityExtractor().extract_sync("https://example.com/gardens", PAGE)

    assert article.byline == "Jane Doe"
    assert article.site_name == "Example Site"
    assert article.excerpt == "How small gardens stay quiet."


def test_readability_excerpt_falls_back_to_first_paragraph(monkeypatch):
    monkeypatch.setattr(extractor_module.trafilatura, "extract_metadata", lambda *a, **kw: None)

    article = ReadabilityExtractor().extract_sync("https://example.com/gardens", PAGE)

    assert article.byline == ""
    assert article.site_name == ""
    assert article.excerpt.startswith("Small urban gardens")


@pytest.mark.parametrize("html", [b"", b"   \n  "])
def test_readability_rejects_empty_document(html):
    with pytest.raises(ExtractionError, match="empty document"):
        asyncio.run(ReadabilityExtractor().extract("https://example.com/", html))


def _script(tmp_path, body: str) -> str:
    path = tmp_path / "fake_readability.py"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return str(path)


def _node(tmp_path, body: str, timeout: float = 10.0) -> NodeExtractor:
    return NodeExtractor(_script(tmp_path, body), node_binary=sys.executable, timeout=timeout)


def test_node_extractor_reads_json_article(tmp_path):
    node = _node(
        tmp_path,
        """
        import json, sys
        html = sys.stdin.read()
        json.dump({
            "title": "From " + sys.argv[1],
            "byline": None,
            "content": "<div>" + html + "</div>",
            "textContent": html,
            "length": len(html),
            "excerpt": "ex",
            "siteName": "Site",
        }, sys.stdout)
        """,
    )

    article = asyncio.run(node.extract("https://example.com/a", b"hello"))

    assert article.title == "From https://example.com/a"
    assert article.byline == ""
    assert article.content == "<div>hello</div>"
    assert article.text_content == "hello"
    assert article.length == 5
    assert article.site_name == "Site"


def test_node_extractor_null_article(tmp_path):
    node = _node(tmp_path, "print('null')\n")
    with pytest.raises(ExtractionError, match="no article"):
        asyncio.run(node.extract("https://example.com/a", b"<html></html>"))


def test_node_extractor_nonzero_exit(tmp_path):
    node = _node(
        tmp_path,
        """
        import sys
        sys.stderr.write("boom")
        sys.exit(3)
        """,
    )
    with pytest.raises(ExtractionError, match="exited with 3: boom"):
        asyncio.run(node.extract("https://example.com/a", b"<html></html>"))


SLEEPER = """
import os, pathlib, sys, time
pathlib.Path(sys.argv[0]).with_name("child.pid").write_text(str(os.getpid()))
time.sleep(30)
"""


def _assert_gone(pid: int) -> None:
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_node_extractor_timeout_kills_process(tmp_path):
    node = _node(tmp_path, SLEEPER, timeout=3.0)
    with pytest.raises(ExtractionError, match="timed out"):
        asyncio.run(node.extract("https://example.com/a", b"<html></html>"))

    _assert_gone(int((tmp_path / "child.pid").read_text()))


def test_node_extractor_cancel_kills_process(tmp_path):
    node = _node(tmp_path, SLEEPER)
    pid_file = tmp_path / "child.pid"

    async def run() -> int:
        task = asyncio.create_task(node.extract("https://example.com/a", b"<html></html>"))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return int(pid_file.read_text())

    _assert_gone(asyncio.run(run()))


def test_node_extractor_missing_binary(tmp_path):
    node = NodeExtractor(str(tmp_path / "script.js"), node_binary=str(tmp_path / "no-such-node"))
    with pytest.raises(ExtractionError, match="cannot start"):
        asyncio.run(node.extract("https://example.com/a", b"<html></html>"))


@pytest.mark.parametrize(
    ("stdout", "message"),
    [
        (b"not json", "malformed extractor output"),
        (b"[1, 2]", "no article"),
        (b'{"length": "many"}', "malformed length"),
    ],
)
def test_parse_node_output_errors(stdout, message):
    with pytest.raises(ExtractionError, match=message):
        _parse_node_output(stdout, "https://example.com/a")


def test_parse_node_output_defaults_missing_fields():
    article = _parse_node_output(b'{"title": "T"}', "https://example.com/a")
    assert article.title == "T"
    assert article.content == ""
    assert article.length == 0


def test_create_extractor():
    assert isinstance(create_extractor(ExtractConfig()), ReadabilityExtractor)

    node = create_extractor(ExtractConfig(backend=" Node ", node_binary="nodejs", timeout_seconds=5))
    assert isinstance(node, NodeExtractor)
    assert node.node_binary == "nodejs"
    assert node.timeout == 5

    with pytest.raises(ValueError, match="Unsupported extract backend"):
        create_extractor(ExtractConfig(backend="magic"))
