"""Tests for YAML configuration loading."""

from __future__ import annotations

from url_reader.config import BUNDLED_READABILITY_SCRIPT, AppConfig, apply_env_overrides, load_config
from url_reader.core.shortid import DEFAULT_ALPHABET


def test_defaults():
    cfg = load_config(None)
    assert cfg == AppConfig()
    assert cfg.store.path == "reader.db"
    assert cfg.shortid.alphabet == DEFAULT_ALPHABET
    assert cfg.extract.backend == "readability"
    assert cfg.extract.node_script == str(BUNDLED_READABILITY_SCRIPT)
    assert "Firefox" in cfg.fetch.user_agent


def test_load_yaml_merges_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "fetch:\n"
        "  timeout_seconds: 5\n"
        "extract:\n"
        "  backend: node\n"
        "store:\n"
        "  path: /data/reader.db\n"
        "unknown_section:\n"
        "  foo: bar\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.fetch.timeout_seconds == 5
    assert cfg.fetch.user_agent == AppConfig().fetch.user_agent
    assert cfg.extract.backend == "node"
    assert cfg.extract.timeout_seconds == 60.0
    assert cfg.store.path == "/data/reader.db"
    assert cfg.logging.level == "INFO"


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)) == AppConfig()


def test_env_overrides():
    cfg = apply_env_overrides(
        AppConfig(),
        {
            "URL_READER_DB": "/tmp/other.db",
            "URL_READER_SLUG_ENCODING": "01",
            "URL_READER_USER_AGENT": "",
            "UNRELATED": "x",
        },
    )

    assert cfg.store.path == "/tmp/other.db"
    assert cfg.shortid.alphabet == "01"
    # Empty values leave the setting alone.
    assert cfg.fetch.user_agent == AppConfig().fetch.user_agent
