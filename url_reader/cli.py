"""
Command-line interface for url_reader.

Uses Typer to expose the ingestion operations, the canonicalizer and the
short ID codec. Supports loading .env files for deployment settings.

Exit codes follow the error kind:
- 0: success
- 1: fetch, extraction or storage failure
- 2: invalid URL or identifier
- 4: record not found
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppConfig, apply_env_overrides, load_config
from .core.clearurl import clean as clean_url
from .core.errors import NotFoundError, ReaderError, ValidationError
from .core.ingest import Reader
from .core.shortid import ShortIDCodec
from .core.types import URLRecord
from .fetch.extractor import create_extractor
from .fetch.fetcher import HTTPFetcher
from .store.sqlite import URLStore
from .utils.logging import setup_logging

app = typer.Typer(add_completion=False, help="Save web articles behind short, reversible IDs.")
console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")

EXIT_FAILURE = 1
EXIT_BAD_REQUEST = 2
EXIT_NOT_FOUND = 4


@dataclass
class State:
    cfg: AppConfig


def build_reader(cfg: AppConfig) -> Reader:
    """Wire the store, fetcher, extractor and codec described by cfg."""
    store = URLStore(cfg.store.path)
    store.migrate()
    fetcher = HTTPFetcher(
        user_agent=cfg.fetch.user_agent,
        timeout=cfg.fetch.timeout_seconds,
        trust_env=cfg.fetch.trust_env,
    )
    return Reader(
        store=store,
        fetcher=fetcher,
        extractor=create_extractor(cfg.extract),
        codec=ShortIDCodec(cfg.shortid.alphabet),
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
    db: Path | None = typer.Option(None, "--db", help="SQLite database file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Load configuration and logging shared by every command."""
    load_dotenv()

    cfg = apply_env_overrides(load_config(str(config) if config else None))
    if db is not None:
        cfg.store.path = str(db)
    if log_level:
        cfg.logging.level = log_level

    setup_logging(cfg.logging)
    ctx.obj = State(cfg=cfg)


@app.command()
def add(ctx: typer.Context, url: str = typer.Argument(..., help="URL to save.")):
    """Save a URL, fetching and extracting it unless already stored."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    record = _run(lambda: reader.add_url(url))
    _print_saved(reader, record)


@app.command()
def update(ctx: typer.Context, identifier: str = typer.Argument(..., help="Record ID or short ID.")):
    """Fetch and extract a stored URL again, overwriting its content."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    record = _run(lambda: reader.update_url(identifier))
    _print_saved(reader, record)


@app.command()
def show(ctx: typer.Context, identifier: str = typer.Argument(..., help="Record ID or short ID.")):
    """Show a stored record."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    record = _call(lambda: reader.get(identifier))
    _print_record(reader, record)


@app.command("list")
def list_urls(ctx: typer.Context):
    """List stored URLs with their short IDs."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    table = Table("ID", "Short", "URL")
    for record in _call(reader.store.list):
        table.add_row(str(record.id), reader.short_id(record), record.url)
    console.print(table)


@app.command()
def random(ctx: typer.Context):
    """Show a randomly chosen stored record."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    record = _call(reader.store.random)
    _print_record(reader, record)


@app.command()
def clean(url: str = typer.Argument(..., help="URL to canonicalize.")):
    """Print the canonical form of a URL."""
    console.print(clean_url(url), markup=False, highlight=False, soft_wrap=True)


@app.command()
def encode(ctx: typer.Context, id: int = typer.Argument(..., min=0, help="Record ID.")):
    """Print the short ID for a record ID."""
    codec = _setup(lambda: ShortIDCodec(_cfg(ctx).shortid.alphabet))
    console.print(_call(lambda: codec.encode(id)), markup=False, highlight=False, soft_wrap=True)


@app.command()
def decode(ctx: typer.Context, short_id: str = typer.Argument(..., help="Short ID.")):
    """Print the record ID for a short ID."""
    codec = _setup(lambda: ShortIDCodec(_cfg(ctx).shortid.alphabet))
    console.print(str(_call(lambda: codec.decode(short_id))), highlight=False)


@app.command()
def migrate(ctx: typer.Context):
    """Apply pending database migrations."""
    store = URLStore(_cfg(ctx).store.path)
    version = _call(store.migrate)
    console.print(f"schema version: {version}")


@app.command()
def backfill(ctx: typer.Context):
    """Fetch the original page body for records stored without one."""
    reader = _setup(lambda: build_reader(_cfg(ctx)))
    updated = _run(reader.backfill_original_content)
    console.print(f"updated {len(updated)} records")


def _cfg(ctx: typer.Context) -> AppConfig:
    if isinstance(ctx.obj, State):
        return ctx.obj.cfg
    return AppConfig()


def _run(factory: Callable[[], Awaitable[T]]) -> T:
    return _call(lambda: asyncio.run(factory()))


def _setup(fn: Callable[[], T]) -> T:
    """Run component construction, reporting bad settings as a bad request."""
    try:
        return _call(fn)
    except ValueError as exc:
        err_console.print(f"[red]invalid configuration:[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=EXIT_BAD_REQUEST) from exc


def _call(fn: Callable[[], T]) -> T:
    try:
        return fn()
    except ValidationError as exc:
        err_console.print(f"[red]bad request:[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=EXIT_BAD_REQUEST) from exc
    except NotFoundError as exc:
        err_console.print(f"[red]not found:[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=EXIT_NOT_FOUND) from exc
    except ReaderError as exc:
        err_console.print(f"[red]failed:[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc


def _print_saved(reader: Reader, record: URLRecord) -> None:
    console.print(f"{record.id}  {reader.short_id(record)}  {record.url}", markup=False, highlight=False, soft_wrap=True)


def _print_record(reader: Reader, record: URLRecord) -> None:
    fields: dict[str, Any] = {
        "id": record.id,
        "short": reader.short_id(record),
        "url": record.url,
        "title": record.title,
        "byline": record.byline,
        "site": record.site_name,
        "length": record.length,
        "excerpt": record.excerpt,
    }
    for key, value in fields.items():
        console.print(f"{key}: {value}", markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    app()
