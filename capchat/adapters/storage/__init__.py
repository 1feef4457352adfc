"""
Storage adapters for capchat.

This module contains the SQLite-based dedup cache.
"""

from .sqlite_cache import SQLiteDedupCache

__all__ = ["SQLiteDedupCache"]
