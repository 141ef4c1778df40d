import enum
from dataclasses import dataclass
from typing import Any, Union

DEFAULT_API_URL = "https://platform.quip.com:443/1"


@dataclass(frozen=True)
class ClientConfig:
    access_token: str
    api_url: str = DEFAULT_API_URL
    # Fallback wait when the server gives no usable hint
    base_wait_ms: float = 1000.0
    # Per-endpoint ceilings, cumulative over the client lifetime
    unavailable_retry_limit: int = 10
    rate_limit_retry_limit: int = 10
    # Max endpoints tracked per counter table. None means unbounded.
    counter_capacity: Union[int, None] = 1024
    # Seconds, applies to each HTTP attempt, not to a whole retry chain
    request_timeout: Union[float, None] = 60.0

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("access_token is required")
        if self.base_wait_ms < 0:
            raise ValueError("base_wait_ms must be >= 0")
        if self.unavailable_retry_limit < 0 or self.rate_limit_retry_limit < 0:
            raise ValueError("retry limits must be >= 0")
        if self.counter_capacity is not None and self.counter_capacity < 1:
            raise ValueError("counter_capacity must be >= 1 or None")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0 or None")


class CallOutcome(str, enum.Enum):
    OK = "ok"
    RETRIES_EXHAUSTED = "retries_exhausted"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    INVALID_BODY = "invalid_body"


@dataclass(frozen=True)
class CallResult:
    """Outcome of one logical call, retries included.

    ``value`` holds the decoded JSON value (or raw bytes for binary calls) and is
    ``None`` for every outcome other than ``OK``.
    """

    outcome: CallOutcome
    endpoint: str
    value: Any = None
    status: Union[int, None] = None
    error: Union[BaseException, None] = None

    @property
    def ok(self) -> bool:
        return self.outcome is CallOutcome.OK

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class RawResponse:
    status: int
    headers: dict[str, str]
    body: bytes

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300  # noqa: PLR2004
