"""
Article fetching and extraction.

This package handles HTTP fetching and readable-content extraction
for the ingestion orchestrator.
"""

from .fetcher import FetchResult, HTTPFetcher
from .extractor import Extractor, NodeExtractor, ReadabilityExtractor, create_extractor

__all__ = [
    "FetchResult",
    "HTTPFetcher",
    "Extractor",
    "NodeExtractor",
    "ReadabilityExtractor",
    "create_extractor",
]
