import asyncio
import contextlib
import json
import logging
import time
from typing import Union

from .adapters import Transport, coerce_transport
from .errors import TransportFailure
from .policies import FailureClass, WaitPolicy, classify
from .state import RetryCounterTable
from .types import CallOutcome, CallResult, ClientConfig, RawResponse

LOGGER_NAME = "quipclient"


class ResilientCallEngine:
    """Performs one logical request against the API, absorbing 429 and 503 responses.

    Each failure class has its own counter table keyed by endpoint (path + query).
    Counts accumulate over the engine's lifetime: once an endpoint has been retried
    ``limit`` times for a class, the next failure of that class gives up at once.

    Transport failures (no HTTP response at all) are *not* retried; they end the
    call with ``CallOutcome.TRANSPORT_ERROR``. Statuses other than 2xx/429/503 end
    it with ``CallOutcome.HTTP_ERROR``. Nothing here raises for a failed request.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Union[Transport, str, None] = None,
        logger=None,
        log_level: Union[int, None] = None,
        sleep=None,
    ):
        self.config = config
        self.transport = coerce_transport(transport)
        self.wait_policy = WaitPolicy(config.base_wait_ms)
        self.unavailable = RetryCounterTable(
            FailureClass.UNAVAILABLE.value, config.counter_capacity
        )
        self.rate_limited = RetryCounterTable(
            FailureClass.RATE_LIMITED.value, config.counter_capacity
        )
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._sleep = sleep or asyncio.sleep
        # logical calls vs HTTP attempts (retries included)
        self.query_count = 0
        self.request_count = 0
        if log_level is not None:
            with contextlib.suppress(Exception):
                self._logger.setLevel(log_level)

    @property
    def logger(self):
        return self._logger

    def set_logger(self, logger) -> None:
        """Replace the logger. It must accept stdlib ``logging.Logger`` calls, including
        ``error(msg, exc_info=exc)``.
        """
        self._logger = logger

    def _now(self) -> float:
        return time.time()

    def _request_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "Content-Type": "application/json",
        }

    def _table_for(self, failure: FailureClass) -> RetryCounterTable:
        if failure is FailureClass.UNAVAILABLE:
            return self.unavailable
        return self.rate_limited

    def _limit_for(self, failure: FailureClass) -> int:
        if failure is FailureClass.UNAVAILABLE:
            return self.config.unavailable_retry_limit
        return self.config.rate_limit_retry_limit

    async def send(self, method: str, path: str) -> RawResponse:
        """Single HTTP attempt. Raises TransportFailure if no response arrives."""
        self.request_count += 1
        url = f"{self.config.api_url}{path}"
        self._logger.debug(f"req start method={method} endpoint={path}")
        resp = await self.transport.send(
            method, url, self._request_headers(), self.config.request_timeout
        )
        self._logger.debug(f"req done method={method} endpoint={path} status={resp.status}")
        return resp

    async def sleep_ms(self, wait_ms: float) -> None:
        await self._sleep(wait_ms / 1000.0)

    async def call(self, path: str, method: str = "GET", binary: bool = False) -> CallResult:
        self.query_count += 1
        while True:
            try:
                resp = await self.send(method, path)
            except TransportFailure as e:
                self._logger.error(f"Couldn't fetch endpoint={path}: {e}", exc_info=e)
                return CallResult(CallOutcome.TRANSPORT_ERROR, path, error=e)

            if resp.is_success:
                return self._decode(path, resp, binary)

            failure = classify(resp.status)
            if failure is None:
                self._logger.debug(f"Couldn't fetch endpoint={path}, received status={resp.status}")
                return CallResult(CallOutcome.HTTP_ERROR, path, status=resp.status)

            wait_ms = self.wait_policy.wait_ms(failure, resp.headers, self._now())
            count = self._table_for(failure).increment(path)
            limit = self._limit_for(failure)
            if count > limit:
                self._logger.error(
                    f"Couldn't fetch endpoint={path}, tried {limit} times "
                    f"(status={resp.status} {failure.value})"
                )
                return CallResult(CallOutcome.RETRIES_EXHAUSTED, path, status=resp.status)

            self._logger.debug(
                f"HTTP {resp.status} ({failure.value}) endpoint={path} "
                f"attempt={count}/{limit}; waiting {wait_ms:.0f} ms"
            )
            await self.sleep_ms(wait_ms)

    def _decode(self, path: str, resp: RawResponse, binary: bool) -> CallResult:
        if binary:
            return CallResult(CallOutcome.OK, path, value=resp.body, status=resp.status)
        try:
            value = json.loads(resp.body)
        except ValueError as e:
            self._logger.error(f"Couldn't decode JSON from endpoint={path}", exc_info=e)
            return CallResult(CallOutcome.INVALID_BODY, path, status=resp.status, error=e)
        return CallResult(CallOutcome.OK, path, value=value, status=resp.status)

    async def aclose(self) -> None:
        await self.transport.aclose()
