"""Prometheus metrics for the ingestion engine.

All metrics use the 'catlog_' prefix.
"""

from prometheus_client import Counter

LINES_PROCESSED = Counter(
    "catlog_lines_total",
    "Total lines read from the active source and echoed",
)

STATUS_DETECTED = Counter(
    "catlog_status_detected_total",
    "Status codes found in lines, before filtering",
    ["code"],
)

NOTIFICATIONS = Counter(
    "catlog_notifications_total",
    "Notifications attempted for status codes that passed the filter",
    ["notifier", "status"],  # status: sent, failed, suppressed
)
