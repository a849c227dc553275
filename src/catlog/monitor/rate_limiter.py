"""Per-status-code cooldown for notifications."""

from collections import defaultdict
from datetime import datetime, timedelta


class RateLimiter:
    """Rate limiter to keep a noisy status code from flooding the terminal.

    Tracks when each status code last notified and enforces a cooldown
    before it may notify again.
    """

    def __init__(self, cooldown_seconds: float = 0):
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.last_notified: dict[int, datetime] = {}
        self.suppressed: dict[int, int] = defaultdict(int)

    def should_notify(self, status_code: int) -> bool:
        """Check whether a notification for this status code may go out now.

        A zero cooldown always allows it. A suppressed notification is counted.
        """
        now = datetime.now()
        if not self.cooldown:
            self.last_notified[status_code] = now
            return True

        last = self.last_notified.get(status_code)
        if last is None or (now - last) >= self.cooldown:
            self.last_notified[status_code] = now
            return True

        self.suppressed[status_code] += 1
        return False

    def get_suppressed_counts(self) -> dict[int, int]:
        """Notifications held back by the cooldown, per status code."""
        return dict(self.suppressed)

    def time_until_notify(self, status_code: int) -> timedelta | None:
        """Get time remaining until this status code can notify again.

        Returns:
            Time remaining, or None if it can notify now
        """
        last = self.last_notified.get(status_code)
        if not self.cooldown or last is None:
            return None

        elapsed = datetime.now() - last
        if elapsed >= self.cooldown:
            return None

        return self.cooldown - elapsed
