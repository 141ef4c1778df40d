import asyncio
import contextlib
from typing import Union

from .errors import TransportFailure
from .types import RawResponse


class Transport:
    """Sends one HTTP request and returns the whole response.

    Implementations raise TransportFailure when no HTTP response was received.
    """

    async def send(
        self, method: str, url: str, headers: dict[str, str], timeout: Union[float, None]
    ) -> RawResponse:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


# ---------- httpx ----------
class HttpxTransport(Transport):
    def __init__(self, client=None):
        # A caller-supplied client is borrowed, never closed here
        self.client = client
        self._internal_client = None

    def _get_client(self):
        import httpx  # noqa: PLC0415

        client = self.client or self._internal_client
        if client is None:
            self._internal_client = client = httpx.AsyncClient()
        return client

    async def send(self, method, url, headers, timeout):
        import httpx  # noqa: PLC0415

        client = self._get_client()
        try:
            resp = await client.request(method, url, headers=headers, timeout=timeout)
        except httpx.RequestError as e:
            raise TransportFailure(method, url, e) from e
        return RawResponse(resp.status_code, dict(resp.headers), resp.content)

    async def aclose(self):
        if self._internal_client is not None:
            with contextlib.suppress(Exception):
                await self._internal_client.aclose()
            self._internal_client = None


# ---------- aiohttp ----------
class AiohttpTransport(Transport):
    def __init__(self, session=None):
        self.session = session
        self._own_session = False

    def _get_session(self):
        if self.session is None:
            import aiohttp  # noqa: PLC0415

            self.session = aiohttp.ClientSession()
            self._own_session = True
        return self.session

    async def send(self, method, url, headers, timeout):
        import aiohttp  # noqa: PLC0415

        session = self._get_session()
        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
        try:
            resp = await session.request(method, url, headers=headers, **kwargs)
            try:
                body = await resp.read()
            finally:
                with contextlib.suppress(Exception):
                    await resp.release()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(method, url, e) from e
        return RawResponse(resp.status, dict(resp.headers), body)

    async def aclose(self):
        if self._own_session and self.session is not None:
            await self.session.close()
            self.session = None
            self._own_session = False


def coerce_transport(transport: Union[Transport, str, None]) -> Transport:
    """Turn None | "httpx" | "aiohttp" | Transport into a Transport."""
    if transport is None:
        return HttpxTransport()
    if isinstance(transport, Transport):
        return transport
    if isinstance(transport, str):
        name = transport.lower()
        if name == "httpx":
            return HttpxTransport()
        if name == "aiohttp":
            return AiohttpTransport()
        raise ValueError("Unknown transport string. Use 'httpx' or 'aiohttp', or pass a Transport.")
    raise TypeError("transport must be None, 'httpx'|'aiohttp', or a Transport instance")
