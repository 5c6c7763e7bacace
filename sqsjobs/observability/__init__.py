"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from sqsjobs.observability.logging import bind_context, setup_logging
from sqsjobs.observability.metrics import MetricsCollector, get_metrics
from sqsjobs.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "bind_context",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
]
