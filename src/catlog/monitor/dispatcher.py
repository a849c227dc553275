"""Dispatcher: echo every line, notify on the interesting status codes."""

from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import click
import structlog

from catlog.config import FilterConfig
from catlog.errors import SourceIOError
from catlog.metrics import LINES_PROCESSED, NOTIFICATIONS, STATUS_DETECTED

from .classifier import detect_status_code, should_notify
from .notifiers import Notifier
from .rate_limiter import RateLimiter
from .sources import LineSource

log = structlog.get_logger()


class DispatcherState(Enum):
    """Lifecycle of a dispatcher. Errors end in CLOSED too."""

    IDLE = "idle"
    READING = "reading"
    EMIT_LINE = "emit_line"
    CLOSED = "closed"


@dataclass
class DispatchStats:
    """What happened during one run."""

    lines: int = 0
    detected: Counter[int] = field(default_factory=Counter)
    notified: int = 0
    failed: int = 0
    suppressed: int = 0


def echo_line(line: str) -> None:
    """Default echo sink: the line on stdout, flushed.

    color=True keeps ANSI escapes from the source even when stdout is piped.
    """
    click.echo(line, color=True)


class Dispatcher:
    """Drives one line source through detection, filtering and notification."""

    def __init__(
        self,
        source: LineSource,
        filter_config: FilterConfig | None = None,
        notifiers: Sequence[Notifier] = (),
        echo: Callable[[str], None] = echo_line,
        rate_limiter: RateLimiter | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            source: Where lines come from
            filter_config: Which status codes notify (default: 4xx and 5xx)
            notifiers: Called in order for every status code that passes
            echo: Sink every line is written to before it is classified
            rate_limiter: Optional per-code cooldown
        """
        self.source = source
        self.filter_config = filter_config or FilterConfig()
        self.notifiers = list(notifiers)
        self.echo = echo
        self.rate_limiter = rate_limiter or RateLimiter()

        self.state = DispatcherState.IDLE
        self.stats = DispatchStats()

    def process_line(self, line: str) -> int | None:
        """Echo a line and notify if it carries a status code that passes the filter.

        Returns:
            The detected status code, or None
        """
        self.echo(line)
        self.stats.lines += 1
        LINES_PROCESSED.inc()

        status_code = detect_status_code(line, self.filter_config)
        if status_code is None:
            return None

        self.stats.detected[status_code] += 1
        STATUS_DETECTED.labels(code=str(status_code)).inc()

        if should_notify(status_code, self.filter_config):
            self._notify(status_code, line)
        return status_code

    def _notify(self, status_code: int, line: str) -> None:
        if not self.rate_limiter.should_notify(status_code):
            self.stats.suppressed += 1
            log.debug(
                "Notification suppressed by cooldown",
                status_code=status_code,
                retry_in=str(self.rate_limiter.time_until_notify(status_code)),
            )
            for notifier in self.notifiers:
                NOTIFICATIONS.labels(notifier=notifier.name, status="suppressed").inc()
            return

        for notifier in self.notifiers:
            try:
                notifier.notify(status_code, line)
            except Exception as e:
                # A flaky notifier must never stop ingestion
                self.stats.failed += 1
                NOTIFICATIONS.labels(notifier=notifier.name, status="failed").inc()
                log.warning(
                    "Notification failed",
                    notifier=notifier.name,
                    status_code=status_code,
                    error=str(e),
                )
            else:
                self.stats.notified += 1
                NOTIFICATIONS.labels(notifier=notifier.name, status="sent").inc()

    def run(self) -> DispatchStats:
        """Consume the source until it ends or is stopped.

        The source is always closed on the way out. A SourceIOError is
        re-raised once the dispatcher is CLOSED.
        """
        if self.state is not DispatcherState.IDLE:
            raise RuntimeError(f"Dispatcher already {self.state.value}")

        self.state = DispatcherState.READING
        log.debug("Dispatcher reading", source=type(self.source).__name__)

        lines = iter(self.source)
        try:
            for line in lines:
                self.state = DispatcherState.EMIT_LINE
                self.process_line(line)
                self.state = DispatcherState.READING
        except SourceIOError as e:
            log.error("Source failed", error=str(e))
            raise
        finally:
            close_lines = getattr(lines, "close", None)
            if close_lines is not None:
                close_lines()
            self.source.close()
            self.state = DispatcherState.CLOSED
            log.info(
                "Dispatcher closed",
                lines=self.stats.lines,
                detected=dict(self.stats.detected),
                notified=self.stats.notified,
                failed=self.stats.failed,
                suppressed=self.stats.suppressed,
                suppressed_by_code=self.rate_limiter.get_suppressed_counts(),
            )

        return self.stats

    def stop(self) -> None:
        """Ask the source to stop; run() returns once it does."""
        log.info("Stopping dispatcher")
        self.source.close()
