"""
Observability module - Logging, Metrics, and Tracing.
"""

from banner_credits.observability.logging import get_logger, log_context, setup_logging
from banner_credits.observability.metrics import metrics
from banner_credits.observability.tracing import setup_tracing

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
]
