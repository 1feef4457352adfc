"""
Observability for capchat: loguru logging and Prometheus counters.
"""

from .logging_setup import get_logger, setup_logging, with_context

__all__ = ["get_logger", "setup_logging", "with_context"]
