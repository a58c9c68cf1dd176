"""
Transport Module.

Defines the single capability the SDK needs from the network layer: send one
[`HttpRequest`][lineflux.comm.dispatch.HttpRequest] and return its
[`HttpResponse`][lineflux.models.query.response.HttpResponse].

[`HttpxTransport`][lineflux.comm.transport.HttpxTransport] is the default
implementation. Any object with a matching `send()`/`close()` pair can be
passed to the client instead (e.g. to add retries, or to stub the server in tests).
"""

from typing import Optional, Protocol
from urllib.parse import urlsplit

import httpx

from ..errors import TransportError
from ..logging_config import get_logger
from ..models.query.response import HttpResponse
from .dispatch import HttpRequest

# Set the hierarchical logger
logger = get_logger(__name__)


class Transport(Protocol):
    """
    Structural protocol of the network collaborator.

    Implementations must send `request.url` verbatim: it is already
    percent-encoded by the dispatcher.
    """

    def send(self, request: HttpRequest) -> HttpResponse:
        """
        Sends a request and returns the response, whatever its status.

        Raises:
            TransportError: If no response could be obtained.
        """
        ...

    def close(self) -> None:
        """Releases the resources held by the transport."""
        ...


class HttpxTransport:
    """
    [`Transport`][lineflux.comm.transport.Transport] backed by an `httpx.Client`.

    The underlying client owns the connection pool; it is created lazily on
    the first request unless one is injected.
    """

    def __init__(self, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        """
        Args:
            timeout: Request timeout in seconds, used when no client is injected.
            client: An externally configured `httpx.Client` (proxies, TLS,
                mock transports). The transport takes ownership of it.
        """
        self._timeout = timeout
        self._client: Optional[httpx.Client] = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def send(self, request: HttpRequest) -> HttpResponse:
        # httpx keeps existing percent-escapes as they are, so the URL built
        # by the dispatcher goes on the wire unchanged
        try:
            resp = self._get_client().request(
                request.method,
                request.url,
                content=request.body,
                headers=request.headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(
                f"{request.method} request to '{urlsplit(request.url).path}' failed: '{e}'"
            ) from e

        return HttpResponse(
            status_code=resp.status_code,
            body=resp.content,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    def close(self) -> None:
        if self._client is not None:
            logger.debug("Closing HTTP client")
            self._client.close()
            self._client = None
