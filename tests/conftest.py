import httpx
import pytest

from quipclient import ClientConfig, HttpxTransport, QuipClient

API_URL = "https://quip.test/1"
NOW = 1_700_000_000.0


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def reply(status, **kwargs):
    return (status, kwargs)


class Script:
    """Serves queued replies (or raises queued exceptions) and records requests.

    The last item is repeated once the queue is down to it.
    """

    def __init__(self, *items):
        self.items = list(items)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        item = self.items.pop(0) if len(self.items) > 1 else self.items[0]
        if isinstance(item, Exception):
            raise item
        status, kwargs = item
        return httpx.Response(status, **kwargs)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_client(sleep, monkeypatch):
    def _make(script, **config):
        http = httpx.AsyncClient(transport=httpx.MockTransport(script))
        cfg = ClientConfig(access_token="TOKEN", api_url=API_URL, **config)
        client = QuipClient(config=cfg, transport=HttpxTransport(client=http), sleep=sleep)
        monkeypatch.setattr(client.engine, "_now", lambda: NOW)
        return client

    return _make
