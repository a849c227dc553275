"""Line ingestion and HTTP status code detection.

Reads lines from stdin, a followed file or a command's output, echoes them,
and notifies when a line carries a status code that passes the filter.
"""

from .classifier import (
    detect_status_code,
    is_error_code,
    needs_broad_matching,
    should_notify,
)
from .discord import DiscordClient, DiscordNotifier
from .dispatcher import Dispatcher, DispatcherState, DispatchStats, echo_line
from .display import render_image
from .file_tailer import FileTailer
from .http_cat import HttpCatClient
from .notifiers import CatNotifier, Notifier
from .process_tailer import ProcessTailer
from .rate_limiter import RateLimiter
from .sources import LineSource, StreamSource, open_source

__all__ = [
    # Dispatcher
    "Dispatcher",
    "DispatcherState",
    "DispatchStats",
    "echo_line",
    # Sources
    "LineSource",
    "StreamSource",
    "FileTailer",
    "ProcessTailer",
    "open_source",
    # Classifier
    "detect_status_code",
    "is_error_code",
    "needs_broad_matching",
    "should_notify",
    # Notifiers
    "Notifier",
    "CatNotifier",
    "HttpCatClient",
    "render_image",
    "DiscordClient",
    "DiscordNotifier",
    # Rate limiter
    "RateLimiter",
]
