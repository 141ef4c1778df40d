from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from quipclient import (
    AiohttpTransport,
    HttpxTransport,
    TransportFailure,
    coerce_transport,
)


def test_coerce_transport():
    assert isinstance(coerce_transport(None), HttpxTransport)
    assert isinstance(coerce_transport("httpx"), HttpxTransport)
    assert isinstance(coerce_transport("AIOHTTP"), AiohttpTransport)
    t = HttpxTransport()
    assert coerce_transport(t) is t
    with pytest.raises(ValueError):
        coerce_transport("urllib")
    with pytest.raises(TypeError):
        coerce_transport(42)


@pytest.mark.asyncio
async def test_httpx_send_passes_headers_and_timeout():
    async_client = AsyncMock()
    resp = MagicMock()
    resp.status_code = 200
    resp.headers = {"retry-after": "1"}
    resp.content = b"{}"
    async_client.request.return_value = resp

    transport = HttpxTransport(client=async_client)
    raw = await transport.send("GET", "https://quip.test/1/x", {"Authorization": "Bearer T"}, 9.0)
    assert raw.status == 200
    assert raw.headers == {"retry-after": "1"}
    args, kwargs = async_client.request.call_args
    assert args == ("GET", "https://quip.test/1/x")
    assert kwargs["headers"]["Authorization"] == "Bearer T"
    assert kwargs["timeout"] == 9.0


@pytest.mark.asyncio
async def test_httpx_errors_become_transport_failures():
    def handler(request):
        raise httpx.ConnectError("dns failure")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        transport = HttpxTransport(client=http)
        with pytest.raises(TransportFailure) as info:
            await transport.send("GET", "https://quip.test/1/x", {}, None)
    assert isinstance(info.value.__cause__, httpx.ConnectError)
    assert info.value.method == "GET"


@pytest.mark.asyncio
async def test_borrowed_client_is_not_closed():
    async_client = AsyncMock()
    transport = HttpxTransport(client=async_client)
    await transport.aclose()
    async_client.aclose.assert_not_called()
