import email.utils as eut
import enum
import math
from collections.abc import Mapping
from datetime import timezone
from typing import Union

RETRY_AFTER_HEADER = "retry-after"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"

HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVICE_UNAVAILABLE = 503


class FailureClass(str, enum.Enum):
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"


def classify(status: int) -> Union[FailureClass, None]:
    """Return the retryable failure class for a status, or None if not retryable."""
    if status == HTTP_SERVICE_UNAVAILABLE:
        return FailureClass.UNAVAILABLE
    if status == HTTP_TOO_MANY_REQUESTS:
        return FailureClass.RATE_LIMITED
    return None


def header_value(headers: Mapping[str, str], name: str) -> Union[str, None]:
    """Case-insensitive header lookup. Blank values count as missing."""
    wanted = name.lower()
    for k, v in headers.items():
        if k.lower() == wanted:
            v = v.strip()
            return v or None
    return None


def parse_retry_after(headers: Mapping[str, str], now: float) -> Union[float, None]:
    """Milliseconds to wait according to Retry-After, or None if absent/unparsable.

    A finite numeric value is seconds. Anything else is read as an HTTP-date (RFC 7231); a
    date in the past gives a negative number.
    """
    ra = header_value(headers, RETRY_AFTER_HEADER)
    if ra is None:
        return None
    try:
        seconds = float(ra)
    except ValueError:
        pass
    else:
        # float() also accepts "inf", "nan" and overflows such as "1e400"
        return seconds * 1000.0 if math.isfinite(seconds) else None
    try:
        ts = eut.parsedate_to_datetime(ra)
    except (TypeError, ValueError):
        return None
    if ts is None:
        return None
    if ts.tzinfo is None:
        # "-0000" dates come back naive but are UTC
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts.timestamp() - now) * 1000.0


def parse_rate_limit_reset(headers: Mapping[str, str], now: float) -> Union[float, None]:
    """Milliseconds until the X-Ratelimit-Reset epoch, or None if absent/not in the future."""
    raw = header_value(headers, RATE_LIMIT_RESET_HEADER)
    if raw is None:
        return None
    try:
        reset_at = float(raw)
    except ValueError:
        return None
    if not math.isfinite(reset_at):
        return None
    if reset_at <= now:
        return None
    return (reset_at - now) * 1000.0


class WaitPolicy:
    """Turns a retryable response into a wait duration in milliseconds."""

    def __init__(self, base_wait_ms: float = 1000.0):
        self.base_wait_ms = base_wait_ms

    def wait_ms(self, failure: FailureClass, headers: Mapping[str, str], now: float) -> float:
        if failure is FailureClass.UNAVAILABLE:
            hinted = parse_rate_limit_reset(headers, now)
        else:
            hinted = parse_retry_after(headers, now)
        if hinted is None:
            return self.base_wait_ms
        # a Retry-After date already in the past means retry immediately
        return max(0.0, hinted)
