class QuipClientError(Exception):
    """Base class for errors raised by quipclient."""


class TransportFailure(QuipClientError):
    """The request never produced an HTTP response (connection, DNS, timeout)."""

    def __init__(self, method: str, url: str, cause: BaseException):
        self.method = method
        self.url = url
        super().__init__(f"{method} {url} failed: {cause!r}")
