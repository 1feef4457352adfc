"""
Orchestrators for capchat.

This module contains the one-shot run orchestrator.
"""

from .orchestrator import Orchestrator

__all__ = ["Orchestrator"]
