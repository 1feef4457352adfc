"""
Port interfaces for capchat.

This module defines the port interfaces (Protocols) between the core
pipeline and its network, storage and notification adapters.
"""

from .fetch import FetchPort, FetchResponse
from .cache import DedupCachePort
from .dispatch import NotifierPort

__all__ = ["FetchPort", "FetchResponse", "DedupCachePort", "NotifierPort"]
