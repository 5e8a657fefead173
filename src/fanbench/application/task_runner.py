"""Execution of a single task unit."""

import asyncio
import time
from typing import Any, Protocol

import httpx

from fanbench.domain.models import TaskResult, TaskUnit
from fanbench.infrastructure.logger import get_logger
from fanbench.infrastructure.simulated_endpoint import mock_api_path

logger = get_logger(__name__)


class RequestIssuer(Protocol):
    """Anything able to issue one request, e.g. ``HttpTransport``."""

    async def issue(self, url: str, timeout: httpx.Timeout | None = None) -> dict[str, Any]: ...


class UnitRunner(Protocol):
    """Executes one task unit at the task boundary, e.g. ``TaskRunner``."""

    async def execute(self, unit: TaskUnit) -> TaskResult: ...


class TaskRunner:
    """Runs one task unit and converts its outcome into a TaskResult.

    This is the task boundary: every exception raised while issuing the
    request is caught here and recorded as a failure marker, so it can
    never abort sibling tasks or the batch barrier. Cancellation is not an
    ``Exception`` and still propagates to the caller.
    """

    def __init__(self, transport: RequestIssuer, timeout: httpx.Timeout | None = None):
        """Initialize task runner.

        Args:
            transport: Shared request issuer (never mutated by the runner)
            timeout: Optional per-request timeout forwarded to the transport
        """
        self.transport = transport
        self.timeout = timeout

    async def execute(self, unit: TaskUnit) -> TaskResult:
        """Issue the unit's request and time it.

        Args:
            unit: Task unit to execute

        Returns:
            A successful TaskResult with the latency, or a failure marker
        """
        url = mock_api_path(unit.target, unit.delay_ms)
        current = asyncio.current_task()
        context = current.get_name() if current is not None else None

        logger.debug("task_started", target=unit.target, url=url, context=context)
        started = time.perf_counter()

        try:
            payload = await self.transport.issue(url, timeout=self.timeout)
        except Exception as e:
            logger.warning(
                "task_failed",
                target=unit.target,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return TaskResult.failure(
                unit.target, f"{type(e).__name__}: {e}", context=context
            )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("task_completed", target=unit.target, elapsed_ms=round(elapsed_ms, 2))
        return TaskResult(
            target=unit.target,
            elapsed_ms=elapsed_ms,
            context=context,
            payload=payload,
        )
