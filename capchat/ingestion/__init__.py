"""
Alert ingestion for capchat.
"""

from .ingestor import AlertIngestor
from .policy import CollectErrors, FailFast, FailurePolicy, policy_for

__all__ = ["AlertIngestor", "CollectErrors", "FailFast", "FailurePolicy", "policy_for"]
