"""
SQLite-backed record store.

The UNIQUE constraint on urls.url is the only deduplication mechanism:
concurrent inserts of the same canonical URL resolve to one row, and the
losing insert surfaces as UniqueViolation so the caller can re-read the
winner.

Schema changes are applied by numbered migrations tracked in the metadata
table under ``schema_version``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from pathlib import Path
import sqlite3
import threading
from typing import Callable, Iterator

from ..core.errors import NotFoundError, PersistenceError, UniqueViolation
from ..core.types import Article, URLRecord

logger = logging.getLogger(__name__)

METADATA_SCHEMA = """
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

SCHEMA_VERSION_KEY = "schema_version"

_COLUMNS = (
    "id, url, original_content, title, content, text_content, length, "
    "excerpt, byline, site_name, created_at, updated_at"
)


def _migrate_v1(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS urls (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            url TEXT NOT NULL UNIQUE,
            original_content TEXT NOT NULL DEFAULT '',
            title TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            text_content TEXT NOT NULL DEFAULT '',
            length INTEGER NOT NULL DEFAULT 0,
            excerpt TEXT NOT NULL DEFAULT '',
            site_name TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )


def _migrate_v2(conn: sqlite3.Connection) -> None:
    """Add the byline column."""
    columns = {row[1] for row in conn.execute("PRAGMA table_info(urls)")}
    if "byline" in columns:
        return
    conn.execute("ALTER TABLE urls ADD COLUMN byline TEXT NOT NULL DEFAULT ''")


MIGRATIONS: dict[int, Callable[[sqlite3.Connection], None]] = {
    1: _migrate_v1,
    2: _migrate_v2,
}


class URLStore:
    """Persistent store of URL records.

    One connection is opened per thread, so a single store can be shared
    by threads and by concurrent asyncio tasks.
    """

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = 5000):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._local = threading.local()

    def _get_conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn"):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
            self._local.conn = conn
        return self._local.conn

    @contextmanager
    def _transaction(self, url: str | None = None) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(f"cannot open {self.db_path}: {exc}", url) from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"{type(exc).__name__}: {exc}", url) from exc
        except BaseException:
            conn.rollback()
            raise

    def close(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            del self._local.conn

    # --- Schema ---

    def schema_version(self) -> int:
        with self._transaction() as conn:
            conn.executescript(METADATA_SCHEMA)
            row = conn.execute(
                "SELECT value FROM metadata WHERE key = ?", (SCHEMA_VERSION_KEY,)
            ).fetchone()
        return int(row["value"]) if row else 0

    def migrate(self) -> int:
        """Apply pending migrations and return the resulting schema version."""
        version = self.schema_version()
        while version + 1 in MIGRATIONS:
            target = version + 1
            logger.info("migrate to %d...", target)
            with self._transaction() as conn:
                # DDL does not open an implicit transaction; keep the schema
                # change and the version bump in one.
                conn.execute("BEGIN")
                MIGRATIONS[target](conn)
                conn.execute(
                    "INSERT INTO metadata (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (SCHEMA_VERSION_KEY, str(target)),
                )
            version = target
        return version

    # --- Record operations ---

    def create(self, url: str, article: Article, original_content: str) -> URLRecord:
        """Insert a new record for the canonical ``url``.

        Raises:
            UniqueViolation: if a record for ``url`` already exists
            PersistenceError: on any other database failure
        """
        now = _now()
        try:
            with self._transaction(url) as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO urls (
                        url, original_content, title, content, text_content,
                        length, excerpt, byline, site_name, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        url,
                        original_content,
                        article.title,
                        article.content,
                        article.text_content,
                        article.length,
                        article.excerpt,
                        article.byline,
                        article.site_name,
                        now,
                        now,
                    ),
                )
                record_id = cursor.lastrowid
        except PersistenceError as exc:
            if _is_unique_violation(exc.__cause__):
                raise UniqueViolation("url already stored", url) from exc.__cause__
            raise
        return self.find_by_id(record_id)

    def find_by_url(self, url: str) -> URLRecord:
        with self._transaction(url) as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM urls WHERE url = ?", (url,)).fetchone()
        if row is None:
            raise NotFoundError("no record for url", url)
        return _row_to_record(row)

    def find_by_id(self, record_id: int) -> URLRecord:
        with self._transaction() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM urls WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"no record with id {record_id}")
        return _row_to_record(row)

    def save(self, record: URLRecord) -> URLRecord:
        """Write every mutable field of ``record`` back to its row."""
        record.updated_at = datetime.now(timezone.utc)
        with self._transaction(record.url) as conn:
            cursor = conn.execute(
                """
                UPDATE urls SET
                    url = ?, original_content = ?, title = ?, content = ?,
                    text_content = ?, length = ?, excerpt = ?, byline = ?,
                    site_name = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    record.url,
                    record.original_content,
                    record.title,
                    record.content,
                    record.text_content,
                    record.length,
                    record.excerpt,
                    record.byline,
                    record.site_name,
                    record.updated_at.isoformat(),
                    record.id,
                ),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise NotFoundError(f"no record with id {record.id}", record.url)
        return record

    def list(self) -> list[URLRecord]:
        with self._transaction() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM urls ORDER BY id").fetchall()
        return [_row_to_record(row) for row in rows]

    def random(self) -> URLRecord:
        with self._transaction() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM urls ORDER BY RANDOM() LIMIT 1").fetchone()
        if row is None:
            raise NotFoundError("store is empty")
        return _row_to_record(row)

    def missing_original_content(self) -> list[URLRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM urls WHERE original_content = '' ORDER BY id"
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._transaction() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM urls").fetchone()
        return int(row["n"])


def _is_unique_violation(exc: BaseException | None) -> bool:
    return isinstance(exc, sqlite3.IntegrityError) and str(exc).startswith("UNIQUE constraint failed")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_record(row: sqlite3.Row) -> URLRecord:
    return URLRecord(
        id=row["id"],
        url=row["url"],
        original_content=row["original_content"],
        title=row["title"],
        content=row["content"],
        text_content=row["text_content"],
        length=row["length"],
        excerpt=row["excerpt"],
        byline=row["byline"],
        site_name=row["site_name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
