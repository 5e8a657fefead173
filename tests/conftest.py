"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
from fanbench.application.task_runner import TaskRunner
from fanbench.infrastructure.simulated_endpoint import MOCK_API_PREFIX, SimulatedEndpoint
from fanbench.infrastructure.transport import HttpTransport

FailingTransportFactory = Callable[..., httpx.MockTransport]


@pytest.fixture
def endpoint() -> SimulatedEndpoint:
    """Seeded simulated endpoint."""
    return SimulatedEndpoint(seed=42)


@pytest.fixture
async def transport(endpoint: SimulatedEndpoint) -> AsyncGenerator[HttpTransport, None]:
    """HTTP transport routed to the in-process simulated endpoint."""
    http = HttpTransport(transport=endpoint.as_transport())
    yield http
    await http.aclose()


@pytest.fixture
def runner(transport: HttpTransport) -> TaskRunner:
    """Task runner over the simulated endpoint."""
    return TaskRunner(transport)


@pytest.fixture
def failing_transport(endpoint: SimulatedEndpoint) -> FailingTransportFactory:
    """Build a MockTransport that raises a connect error for selected targets.

    Every other request is served by the simulated endpoint.
    """

    def factory(*failing_targets: str) -> httpx.MockTransport:
        async def handler(request: httpx.Request) -> httpx.Response:
            target = request.url.path[len(MOCK_API_PREFIX) :]
            if target in failing_targets:
                raise httpx.ConnectError("connection refused", request=request)
            return await endpoint.handle(request)

        return httpx.MockTransport(handler)

    return factory
