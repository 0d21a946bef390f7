"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP fetching settings
- ExtractConfig: Readability extraction settings
- ShortIDConfig: Short ID alphabet
- StoreConfig: SQLite database location
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

A handful of deployment settings can also be overridden from the
environment (see apply_env_overrides).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

import yaml

from .core.shortid import DEFAULT_ALPHABET

BUNDLED_READABILITY_SCRIPT = Path(__file__).parent / "fetch" / "readability.js"


@dataclass
class FetchConfig:
    """Configuration for HTTP content fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 20.0
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:109.0) "
        "Gecko/20100101 Firefox/110.0"
    )


@dataclass
class ExtractConfig:
    """Configuration for readable content extraction.

    Attributes:
        backend: "readability" for in-process extraction, "node" to pipe the
            page through an external readability.js process
        node_binary: Node.js executable used by the "node" backend
        node_script: Path to the readability script for the "node" backend
        timeout_seconds: Upper bound for a single extraction
    """

    backend: str = "readability"
    node_binary: str = "node"
    node_script: str = str(BUNDLED_READABILITY_SCRIPT)
    timeout_seconds: float = 60.0


@dataclass
class ShortIDConfig:
    """Configuration for public short IDs.

    Attributes:
        alphabet: Ordered, duplicate-free characters used as base-K digits
    """

    alphabet: str = DEFAULT_ALPHABET


@dataclass
class StoreConfig:
    """Configuration for the record store.

    Attributes:
        path: SQLite database file
    """

    path: str = "reader.db"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "reader.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    shortid: ShortIDConfig = field(default_factory=ShortIDConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "URL_READER_DB": ("store", "path"),
    "URL_READER_SLUG_ENCODING": ("shortid", "alphabet"),
    "URL_READER_USER_AGENT": ("fetch", "user_agent"),
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def apply_env_overrides(cfg: AppConfig, environ: dict[str, str] | None = None) -> AppConfig:
    """Apply URL_READER_* environment variables on top of cfg (in place)."""
    environ = os.environ if environ is None else environ
    for name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value:
            setattr(getattr(cfg, section), key, value)
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        shortid=ShortIDConfig(**data["shortid"]),
        store=StoreConfig(**data["store"]),
        logging=LoggingConfig(**data["logging"]),
    )
