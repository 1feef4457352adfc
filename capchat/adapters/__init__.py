"""
Adapters for capchat.

This module contains the I/O side of the pipeline: HTTP fetching,
the SQLite dedup cache, the boundary directory loader and the
console notifier.
"""

from .http.fetcher import HttpFetcher
from .storage.sqlite_cache import SQLiteDedupCache
from .geodir.loader import load_polygons
from .dispatch.console import ConsoleNotifier

__all__ = ["HttpFetcher", "SQLiteDedupCache", "load_polygons", "ConsoleNotifier"]
