"""HTTP transport used by every task unit to issue its request."""

from types import TracebackType
from typing import Any

import httpx

from fanbench.infrastructure.config import TransportConfig
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)


class HttpTransport:
    """Thin wrapper around a shared ``httpx.AsyncClient``.

    One client is shared read-only by all tasks of all batches in a call.
    The client is never reconfigured after construction, so concurrent use
    from many tasks is safe.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP transport.

        Args:
            base_url: Base URL every relative request URL is resolved against
            connect_timeout: Connect timeout in seconds
            read_timeout: Read timeout in seconds
            transport: Optional httpx transport (e.g. a MockTransport serving
                the simulated endpoint in-process)
        """
        self.base_url = base_url
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        # No pooled-connection cap: the execution model alone decides concurrency
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=self.timeout,
            transport=transport,
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=None),
        )

    @classmethod
    def from_config(
        cls,
        config: TransportConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpTransport":
        """Build a transport from configuration."""
        return cls(
            base_url=config.base_url,
            connect_timeout=config.connect_timeout_seconds,
            read_timeout=config.read_timeout_seconds,
            transport=transport,
        )

    async def issue(self, url: str, timeout: httpx.Timeout | None = None) -> dict[str, Any]:
        """Issue one GET request and return the decoded JSON body.

        Args:
            url: Absolute URL, or a path relative to ``base_url``
            timeout: Per-request timeout override (defaults to the configured one)

        Returns:
            Decoded JSON response body

        Raises:
            httpx.HTTPError: On transport errors, timeouts and non-2xx responses
        """
        response = await self._client.get(url, timeout=timeout or self.timeout)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data

    async def aclose(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()
        logger.debug("transport_closed", base_url=self.base_url)

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
