"""
Output dispatch adapters for capchat.
"""

from .console import ConsoleNotifier

__all__ = ["ConsoleNotifier"]
