"""Prometheus metrics for catlog.

Usage:
    from catlog.metrics import start_metrics_server, LINES_PROCESSED

    start_metrics_server(port=9100)
    LINES_PROCESSED.inc()
"""

from catlog.metrics.catlog import (
    LINES_PROCESSED,
    NOTIFICATIONS,
    STATUS_DETECTED,
)
from catlog.metrics.server import start_metrics_server

__all__ = [
    "start_metrics_server",
    "LINES_PROCESSED",
    "STATUS_DETECTED",
    "NOTIFICATIONS",
]
