"""In-process simulated API endpoint.

Serves ``GET /mock-api/{id}?delayMs=N`` through ``httpx.MockTransport``: the
handler sleeps for ``N`` milliseconds (not at all when ``N`` is 0) and then
answers with a small JSON payload naming the worker that issued the request
and whether it is a one-shot per-task worker. It never injects failures;
anything that fails a task comes from the transport layer.
"""

import asyncio
import random
from datetime import datetime, timezone

import httpx

from fanbench.domain.models import is_per_task_worker

MOCK_API_PREFIX = "/mock-api/"


def mock_api_path(api_id: str, delay_ms: int) -> str:
    """Build the request path for one simulated API call."""
    return f"{MOCK_API_PREFIX}{api_id}?delayMs={delay_ms}"


def describe_current_context() -> str:
    """Describe the execution context handling the current request."""
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    return task.get_name() if task is not None else "no-task"


class SimulatedEndpoint:
    """Simulated downstream API with artificial latency.

    Each instance owns its random source, so two endpoints built with the
    same seed produce the same sequence of ``value`` fields.
    """

    def __init__(self, seed: int | None = None, value_upper_bound: int = 1000):
        """Initialize simulated endpoint.

        Args:
            seed: Seed for the payload value generator (None for nondeterministic)
            value_upper_bound: Exclusive upper bound of the random ``value`` field
        """
        self._random = random.Random(seed)
        self.value_upper_bound = value_upper_bound
        self.requests_served = 0

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """Handle one request routed by ``httpx.MockTransport``."""
        path = request.url.path
        if request.method != "GET" or not path.startswith(MOCK_API_PREFIX):
            return httpx.Response(404, json={"error": f"no route for {request.method} {path}"})

        api_id = path[len(MOCK_API_PREFIX) :]
        try:
            delay_ms = int(request.url.params.get("delayMs", "0"))
        except ValueError:
            return httpx.Response(400, json={"error": "delayMs must be an integer"})

        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        self.requests_served += 1
        context = describe_current_context()
        return httpx.Response(
            200,
            json={
                "id": api_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "value": self._random.randrange(self.value_upper_bound),
                "threadInfo": context,
                "isPerTask": is_per_task_worker(context),
            },
        )

    def as_transport(self) -> httpx.MockTransport:
        """Mount this endpoint as an httpx transport."""
        return httpx.MockTransport(self.handle)
