from collections import Counter
from collections.abc import Iterable
from typing import Any, Union

from .adapters import Transport
from .engine import ResilientCallEngine
from .env import load_config_from_env
from .errors import TransportFailure
from .policies import HTTP_TOO_MANY_REQUESTS, FailureClass
from .types import CallResult, ClientConfig

CHECK_USER_ATTEMPTS = 10

STAT_NAMES = (
    "get_thread",
    "get_threads",
    "get_folder",
    "get_folders",
    "get_blob",
    "get_pdf",
    "get_xlsx",
    "get_docx",
    "get_current_user",
    "get_thread_messages",
    "get_user",
)

Ids = Union[str, Iterable[str]]


def _join_ids(ids: Ids) -> str:
    if isinstance(ids, str):
        return ids
    return ",".join(ids)


class QuipClient:
    """Async client for the Quip REST API.

    Every resource method returns the decoded JSON value (``bytes`` for blobs and
    exports) or ``None`` when the call failed for any reason. Use ``request`` for a
    ``CallResult`` that says why.

        async with QuipClient("token") as quip:
            thread = await quip.get_thread("abc")
    """

    def __init__(
        self,
        access_token: Union[str, None] = None,
        api_url: Union[str, None] = None,
        config: Union[ClientConfig, None] = None,
        transport: Union[Transport, str, None] = None,
        logger=None,
        log_level: Union[int, None] = None,
        sleep=None,
    ):
        """Initialize a QuipClient.

        Args:
            access_token (str | None): bearer token; required unless ``config`` is given
            api_url (str | None): API origin, defaults to the public Quip platform
            config (ClientConfig | None): full configuration; wins over the two above
            transport (Transport | str | None): "httpx" (default), "aiohttp" or an instance
            logger: object with debug()/error(); defaults to the "quipclient" logger
            log_level (int | None): level applied to the logger
            sleep: coroutine function used for retry waits, takes seconds
        """
        if config is None:
            if access_token is None:
                raise ValueError("access_token or config is required")
            kwargs = {"access_token": access_token}
            if api_url is not None:
                kwargs["api_url"] = api_url
            config = ClientConfig(**kwargs)
        self.config = config
        self.engine = ResilientCallEngine(
            config, transport=transport, logger=logger, log_level=log_level, sleep=sleep
        )
        self.stats: Counter[str] = Counter({name: 0 for name in STAT_NAMES})

    @classmethod
    def from_env(
        cls,
        prefix: str = "QUIP_",
        env_path: Union[str, None] = None,
        **kwargs,
    ):
        """Create a client from QUIP_* environment variables (and an optional .env file).

        ClientConfig field names in kwargs override the environment; everything else
        is passed to the constructor.
        """
        config_keys = set(ClientConfig.__dataclass_fields__)
        overrides = {k: kwargs.pop(k) for k in list(kwargs) if k in config_keys}
        config = load_config_from_env(prefix=prefix, env_path=env_path, **overrides)
        return cls(config=config, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def aclose(self):
        await self.engine.aclose()

    def set_logger(self, logger) -> None:
        """Swap the logger collaborator.

        Any object with stdlib ``logging.Logger`` semantics works; failures are logged
        with ``debug(msg)`` and ``error(msg, exc_info=exc)``.
        """
        self.engine.set_logger(logger)

    @property
    def usage(self) -> dict[str, int]:
        return {
            **self.stats,
            "query_count": self.engine.query_count,
            "request_count": self.engine.request_count,
        }

    # ---------- generic call path ----------
    async def request(self, path: str, method: str = "GET", binary: bool = False) -> CallResult:
        return await self.engine.call(path, method, binary)

    async def _fetch(self, stat: str, path: str, binary: bool = False) -> Any:
        self.stats[stat] += 1
        result = await self.engine.call(path, "GET", binary)
        return result.value

    # ---------- authentication probe ----------
    async def check_user(self) -> bool:
        """Return True if the token is accepted by /users/current.

        Retries only on 429, at most CHECK_USER_ATTEMPTS times, and keeps its own
        attempt count instead of using the engine's counter tables.
        """
        self.stats["get_current_user"] += 1
        logger = self.engine.logger
        for _ in range(CHECK_USER_ATTEMPTS):
            try:
                resp = await self.engine.send("GET", "/users/current")
            except TransportFailure as e:
                logger.error(f"Couldn't check user: {e}", exc_info=e)
                return False
            if resp.is_success:
                return True
            if resp.status != HTTP_TOO_MANY_REQUESTS:
                logger.debug(f"User check failed, received status={resp.status}")
                return False
            wait_ms = self.engine.wait_policy.wait_ms(
                FailureClass.RATE_LIMITED, resp.headers, self.engine._now()
            )
            logger.debug(f"User is under rate limit (429). Waiting {wait_ms:.0f} ms before retry")
            await self.engine.sleep_ms(wait_ms)
        logger.error("User is under rate limit (429) and max retries reached.")
        return False

    # ---------- resources ----------
    async def get_user(self, user_ids: Ids):
        return await self._fetch("get_user", f"/users/{_join_ids(user_ids)}")

    async def get_current_user(self):
        return await self._fetch("get_current_user", "/users/current")

    async def get_folder(self, folder_id: str):
        return await self._fetch("get_folder", f"/folders/{folder_id}")

    async def get_folders(self, folder_ids: Ids):
        return await self._fetch("get_folders", f"/folders/?ids={_join_ids(folder_ids)}")

    async def get_thread(self, thread_id: str):
        return await self._fetch("get_thread", f"/threads/{thread_id}")

    async def get_threads(self, thread_ids: Ids):
        return await self._fetch("get_threads", f"/threads/?ids={_join_ids(thread_ids)}")

    async def get_thread_messages(self, thread_id: str):
        return await self._fetch("get_thread_messages", f"/messages/{thread_id}")

    async def get_blob(self, thread_id: str, blob_id: str) -> Union[bytes, None]:
        return await self._fetch("get_blob", f"/blob/{thread_id}/{blob_id}", binary=True)

    async def get_pdf(self, thread_id: str) -> Union[bytes, None]:
        return await self._fetch("get_pdf", f"/threads/{thread_id}/export/pdf", binary=True)

    async def get_docx(self, thread_id: str) -> Union[bytes, None]:
        return await self._fetch("get_docx", f"/threads/{thread_id}/export/docx", binary=True)

    async def get_xlsx(self, thread_id: str) -> Union[bytes, None]:
        return await self._fetch("get_xlsx", f"/threads/{thread_id}/export/xlsx", binary=True)
