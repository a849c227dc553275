"""HTTP status code detection and notification policy for log lines."""

import re

from catlog.config import FilterConfig

# First word-bounded run of three digits that looks like an error (4xx, 5xx).
# Digits inside timestamps or ports (":500") also match; kept as-is.
ERROR_CODE_PATTERN = re.compile(r"\b([45]\d{2})\b", re.ASCII)

# Same, for any status class. Only used when the filter can notify on 1xx-3xx,
# since IP octets like 127 or 192 match it before the real code does.
ANY_CODE_PATTERN = re.compile(r"\b([1-5]\d{2})\b", re.ASCII)


def needs_broad_matching(config: FilterConfig) -> bool:
    """True when the filter can notify on a status code outside 4xx/5xx."""
    if config.explicit_codes:
        return any(not is_error_code(code) for code in config.explicit_codes)
    return config.match_all


def detect_status_code(line: str, config: FilterConfig | None = None) -> int | None:
    """Return the first HTTP status code mentioned in a line, or None.

    Only 4xx and 5xx codes are looked for unless the filter config can
    notify on other classes.
    """
    pattern = ERROR_CODE_PATTERN
    if config is not None and needs_broad_matching(config):
        pattern = ANY_CODE_PATTERN

    match = pattern.search(line)
    if match is None:
        return None
    return int(match.group(1))


def is_error_code(code: int) -> bool:
    """True for client and server errors (4xx, 5xx)."""
    return 400 <= code <= 599


def should_notify(code: int, config: FilterConfig) -> bool:
    """Decide whether a detected status code should trigger a notification.

    Precedence is fixed: an explicit code list is the most specific signal and
    wins even when match_all is also set; the fallback is errors only.
    """
    if config.explicit_codes:
        return code in config.explicit_codes
    if config.match_all:
        return True
    return is_error_code(code)
