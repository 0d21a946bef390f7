"""
URL canonicalization for deduplication.

Two rule tables are applied in order:
1. Tracking parameters: each key pattern is deleted together with its
   ``=value`` and an optional trailing ``&``. Nothing else is normalized, so
   a stray ``?`` or ``&`` left behind is part of the canonical form.
2. Redirect rewrites: known blog/CMS URL shapes are rewritten to their
   mobile canonical path.

The result is the key the store deduplicates on, so the output must stay
byte-for-byte stable.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

# Tracking keys, adapted from the ClearURLs global rules.
TRACKING_KEYS: tuple[str, ...] = (
    r"(?:%3F)?utm(?:_[a-z_]*)?",
    r"(?:%3F)?ga_[a-z_]+",
    r"(?:%3F)?yclid",
    r"(?:%3F)?_openstat",
    r"(?:%3F)?fb_action_(?:types|ids)",
    r"(?:%3F)?fb_(?:source|ref)",
    r"(?:%3F)?fbclid",
    r"(?:%3F)?action_(?:object|type|ref)_map",
    r"(?:%3F)?gs_l",
    r"(?:%3F)?mkt_tok",
    r"(?:%3F)?hmb_(?:campaign|medium|source)",
    r"(?:%3F)?ref_?",
    r"(?:%3F)?referrer",
    r"(?:%3F)?gclid",
    r"(?:%3F)?otm_[a-z_]*",
    r"(?:%3F)?cmpid",
    r"(?:%3F)?os_ehash",
    r"(?:%3F)?_ga",
    r"(?:%3F)?_gl",
    r"(?:%3F)?__twitter_impression",
    r"(?:%3F)?wt_?z?mc",
    r"(?:%3F)?wtrid",
    r"(?:%3F)?[a-z]?mc",
    r"(?:%3F)?dclid",
    r"Echobox",
    r"(?:%3F)?spm",
    r"(?:%3F)?vn(?:_[a-z]*)+",
    r"(?:%3F)?tracking_source",
    r"(?:%3F)?ceneo_spo",
)

REDIRECTS: tuple[tuple[str, str], ...] = (
    (r"^https://blog.naver.com/(\w+)/(\w+)", r"https://m.blog.naver.com/\1/\2"),
    (
        r"^https://m.blog.naver.com/PostView.naver\?blogId=(\w+)&logNo=(\w+).*",
        r"https://m.blog.naver.com/\1/\2",
    ),
    (r"^https://(.+).tistory.com/(\d+)", r"https://\1.tistory.com/m/\2"),
    (r"^https://infuture.kr/(\d+)", r"https://infutureconsulting.tistory.com/m/\1"),
)

_VALUE_SUFFIX = r"=[a-zA-Z0-9_]+&?"


@dataclass(frozen=True)
class RedirectRule:
    """A compiled rewrite: ``pattern`` is replaced by ``replacement``."""

    pattern: re.Pattern[str]
    replacement: str


@dataclass(frozen=True)
class CleanRules:
    """Compiled, immutable rule tables used by :func:`clean`."""

    remove: tuple[re.Pattern[str], ...]
    redirects: tuple[RedirectRule, ...]


def build_rules(
    tracking_keys: Iterable[str] = TRACKING_KEYS,
    redirects: Iterable[tuple[str, str]] = REDIRECTS,
) -> CleanRules:
    """Compile raw rule tables into a :class:`CleanRules`.

    Args:
        tracking_keys: Regex fragments matching tracking parameter names
        redirects: (pattern, replacement) pairs; replacements use ``\\1``
            style back-references

    Returns:
        Frozen rule set, safe to share between callers
    """
    # \w and \d must stay ASCII-only so non-latin paths are not swallowed.
    remove = tuple(re.compile(key + _VALUE_SUFFIX, re.ASCII) for key in tracking_keys)
    compiled = tuple(
        RedirectRule(pattern=re.compile(pattern, re.ASCII), replacement=replacement)
        for pattern, replacement in redirects
    )
    return CleanRules(remove=remove, redirects=compiled)


DEFAULT_RULES = build_rules()


def clean(url: str, rules: CleanRules = DEFAULT_RULES) -> str:
    """Return the canonical form of ``url``.

    Examples:
        >>> clean("http://x.example/?utm_source=foo&v=b")
        'http://x.example/?v=b'
        >>> clean("https://blog.naver.com/acct/123")
        'https://m.blog.naver.com/acct/123'
    """
    logger.debug("before clean url: %s", url)

    for pattern in rules.remove:
        url = pattern.sub("", url)
    for rule in rules.redirects:
        url = rule.pattern.sub(rule.replacement, url)

    logger.debug("after clean url: %s", url)
    return url
