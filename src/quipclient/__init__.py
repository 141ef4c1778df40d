from .adapters import AiohttpTransport, HttpxTransport, Transport, coerce_transport
from .client import QuipClient
from .engine import ResilientCallEngine
from .env import load_config_from_env
from .errors import QuipClientError, TransportFailure
from .policies import (
    FailureClass,
    WaitPolicy,
    classify,
    header_value,
    parse_rate_limit_reset,
    parse_retry_after,
)
from .state import RetryCounterTable
from .types import CallOutcome, CallResult, ClientConfig, RawResponse

__all__ = [
    "QuipClient",
    "ResilientCallEngine",
    "ClientConfig",
    "CallOutcome",
    "CallResult",
    "RawResponse",
    "RetryCounterTable",
    "FailureClass",
    "WaitPolicy",
    "classify",
    "header_value",
    "parse_retry_after",
    "parse_rate_limit_reset",
    "Transport",
    "HttpxTransport",
    "AiohttpTransport",
    "coerce_transport",
    "QuipClientError",
    "TransportFailure",
    "load_config_from_env",
]
