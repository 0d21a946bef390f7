"""
url-reader: save web articles behind short, reversible IDs.

A submitted URL is canonicalized (tracking parameters stripped, known blog
redirects rewritten), deduplicated against stored URLs, fetched, reduced to
its readable article and stored. Records are addressed publicly by a short
ID derived from their numeric ID.

Main entry point is the CLI via the `url-reader` command.

Example:
    $ url-reader add "https://blog.naver.com/acct/123?utm_source=x"
"""

__all__ = ["__version__", "clean", "encode", "decode"]
__version__ = "0.1.0"

from .core.clearurl import clean
from .core.shortid import decode, encode
