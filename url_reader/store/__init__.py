"""
Record persistence.

The store keeps one row per canonical URL and tracks its own schema
version.
"""

from .sqlite import MIGRATIONS, URLStore

__all__ = ["URLStore", "MIGRATIONS"]
