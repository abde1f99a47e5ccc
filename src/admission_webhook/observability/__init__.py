"""
Observability utilities for the admission webhook.

This module provides metrics, probes, and structured logging
capabilities for production monitoring and troubleshooting.
"""

from .logging import correlation_scope, setup_structured_logging
from .metrics import MetricsServer, get_metrics_registry

__all__ = [
    "MetricsServer",
    "get_metrics_registry",
    "correlation_scope",
    "setup_structured_logging",
]
