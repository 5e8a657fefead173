"""Unit tests for the simulated endpoint and the HTTP transport."""

import asyncio
import time

import httpx
import pytest
from fanbench.infrastructure.config import TransportConfig
from fanbench.infrastructure.simulated_endpoint import SimulatedEndpoint, mock_api_path
from fanbench.infrastructure.transport import HttpTransport


def test_mock_api_path() -> None:
    assert mock_api_path("12", 250) == "/mock-api/12?delayMs=250"


class TestSimulatedEndpoint:
    """Tests for SimulatedEndpoint."""

    @pytest.mark.asyncio
    async def test_payload_shape(self, transport: HttpTransport) -> None:
        """Test the response fields."""
        payload = await transport.issue(mock_api_path("5", 0))

        assert payload["id"] == "5"
        assert set(payload) == {"id", "timestamp", "value", "threadInfo", "isPerTask"}
        assert 0 <= payload["value"] < 1000

    @pytest.mark.asyncio
    async def test_reports_issuing_worker(self, transport: HttpTransport) -> None:
        """Test that the payload names the worker and flags one-shot per-task workers."""
        per_task = await asyncio.create_task(transport.issue(mock_api_path("3", 0)), name="task-3")
        pooled = await asyncio.create_task(
            transport.issue(mock_api_path("4", 0)), name="pool-worker-0"
        )

        assert per_task["threadInfo"] == "task-3"
        assert per_task["isPerTask"] is True
        assert pooled["threadInfo"] == "pool-worker-0"
        assert pooled["isPerTask"] is False

    @pytest.mark.asyncio
    async def test_delay_is_applied(self, transport: HttpTransport) -> None:
        """Test that the endpoint sleeps for the requested delay."""
        started = time.perf_counter()
        await transport.issue(mock_api_path("0", 60))

        assert (time.perf_counter() - started) * 1000 >= 59

    @pytest.mark.asyncio
    async def test_zero_delay_does_not_sleep(self, transport: HttpTransport) -> None:
        started = time.perf_counter()
        await transport.issue(mock_api_path("0", 0))

        assert (time.perf_counter() - started) * 1000 < 50

    @pytest.mark.asyncio
    async def test_same_seed_same_values(self) -> None:
        """Test that seeded endpoints generate reproducible payload values."""
        values = []
        for _ in range(2):
            async with HttpTransport(transport=SimulatedEndpoint(seed=7).as_transport()) as http:
                values.append([(await http.issue(mock_api_path(str(i), 0)))["value"] for i in range(5)])

        assert values[0] == values[1]

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, transport: HttpTransport) -> None:
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await transport.issue("/elsewhere")

        assert exc_info.value.response.status_code == 404

    @pytest.mark.asyncio
    async def test_bad_delay_is_400(self, transport: HttpTransport) -> None:
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await transport.issue("/mock-api/1?delayMs=soon")

        assert exc_info.value.response.status_code == 400

    @pytest.mark.asyncio
    async def test_counts_requests(
        self, endpoint: SimulatedEndpoint, transport: HttpTransport
    ) -> None:
        for i in range(3):
            await transport.issue(mock_api_path(str(i), 0))

        assert endpoint.requests_served == 3


class TestHttpTransport:
    """Tests for HttpTransport."""

    def test_timeouts_from_config(self) -> None:
        """Test that connect/read timeouts are forwarded unchanged."""
        transport = HttpTransport.from_config(
            TransportConfig(connect_timeout_seconds=2.0, read_timeout_seconds=9.0)
        )

        assert transport.timeout.connect == 2.0
        assert transport.timeout.read == 9.0

    def test_default_timeouts(self) -> None:
        transport = HttpTransport()

        assert transport.timeout.connect == 5.0
        assert transport.timeout.read == 30.0
        assert transport.base_url == "http://localhost:8080"

    @pytest.mark.asyncio
    async def test_transport_errors_raise(self) -> None:
        """Test that the transport itself never swallows errors."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with HttpTransport(transport=httpx.MockTransport(refuse)) as http:
            with pytest.raises(httpx.ConnectError):
                await http.issue(mock_api_path("0", 0))
