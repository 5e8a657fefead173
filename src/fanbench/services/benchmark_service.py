"""Benchmark service exposing the benchmark and load test operations."""

import asyncio
import os
import platform
import sys
from types import TracebackType
from typing import Any

import psutil

from fanbench.application.aggregator import FanOutAggregator
from fanbench.application.comparison import ComparisonEngine
from fanbench.application.execution_models import ExecutionModel, create_execution_model
from fanbench.application.load_test import LoadTester
from fanbench.application.resource_monitor import ResourceMonitor
from fanbench.application.statistics import summarize
from fanbench.application.sweep import ScalabilitySweep
from fanbench.application.task_runner import TaskRunner, UnitRunner
from fanbench.domain.models import (
    AggregateMetrics,
    BatchResult,
    ComparisonResult,
    ExecutionModelType,
    LoadTestComparison,
    SweepResult,
    is_per_task_worker,
)
from fanbench.infrastructure.config import Config
from fanbench.infrastructure.logger import get_logger
from fanbench.infrastructure.simulated_endpoint import SimulatedEndpoint
from fanbench.infrastructure.transport import HttpTransport

logger = get_logger(__name__)


def batch_record(batch: BatchResult, include_results: bool = True) -> dict[str, Any]:
    """Serialize a batch together with its aggregate metrics."""
    record = batch.to_record()
    if not include_results:
        record.pop("results")
    record["metrics"] = summarize(batch).to_record()
    return record


class BenchmarkService:
    """Wires configuration, transport and the benchmark pipeline together.

    One service owns one transport for its lifetime; use it as an async
    context manager so the client is closed afterwards.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: HttpTransport | None = None,
        endpoint: SimulatedEndpoint | None = None,
    ):
        """Initialize benchmark service.

        Args:
            config: Configuration (defaults if None)
            transport: Preconfigured transport; built from config if None
            endpoint: Simulated endpoint to mount when the config asks for one
        """
        self.config = config or Config()
        self.endpoint: SimulatedEndpoint | None = None

        if transport is None:
            mock_transport = None
            if self.config.transport.simulated:
                self.endpoint = endpoint or SimulatedEndpoint(
                    seed=self.config.endpoint.seed,
                    value_upper_bound=self.config.endpoint.value_upper_bound,
                )
                mock_transport = self.endpoint.as_transport()
            transport = HttpTransport.from_config(self.config.transport, transport=mock_transport)
        self.transport = transport

        self.runner = TaskRunner(self.transport)
        monitor = (
            ResourceMonitor(sample_interval=self.config.monitoring.sample_interval_seconds)
            if self.config.monitoring.enabled
            else None
        )
        self.aggregator = FanOutAggregator(resource_monitor=monitor)
        self.engine = ComparisonEngine(self.aggregator, self.create_model)
        self.sweeper = ScalabilitySweep(self.engine)
        # Users aggregate concurrently, so their fan-outs are not resource-tracked
        self.load_tester = LoadTester(FanOutAggregator(), self.create_model)

    def create_model(
        self, model_type: ExecutionModelType, runner: UnitRunner | None = None
    ) -> ExecutionModel:
        """Build a fresh execution model using the configured pool settings.

        Args:
            model_type: Which model to build
            runner: Unit runner for the model (default: the HTTP task runner)
        """
        return create_execution_model(
            model_type,
            runner or self.runner,
            capacity=self.config.pool.capacity,
            shutdown_timeout=self.config.pool.shutdown_timeout_seconds,
        )

    async def run_bounded_pool(self, count: int, delay_ms: int) -> BatchResult:
        """Fan out ``count`` requests through the bounded pool."""
        return await self.aggregator.aggregate(
            count, delay_ms, self.create_model(ExecutionModelType.BOUNDED_POOL)
        )

    async def run_unbounded_per_task(self, count: int, delay_ms: int) -> BatchResult:
        """Fan out ``count`` requests with one worker per request."""
        return await self.aggregator.aggregate(
            count, delay_ms, self.create_model(ExecutionModelType.UNBOUNDED_PER_TASK)
        )

    async def compare(self, count: int, delay_ms: int) -> ComparisonResult:
        """Compare both models at one load level."""
        return await self.engine.compare(count, delay_ms)

    async def sweep(self, max_count: int, delay_ms: int, step: int) -> SweepResult:
        """Compare both models at every load level up to ``max_count``."""
        return await self.sweeper.sweep(max_count, delay_ms, step)

    async def load_test(
        self,
        concurrent_users: int,
        api_count: int,
        delay_ms: int,
        model_type: ExecutionModelType,
    ) -> AggregateMetrics:
        """Run concurrent users, each fanning out ``api_count`` requests, on one model."""
        return await self.load_tester.load_test(concurrent_users, api_count, delay_ms, model_type)

    async def compare_load_tests(
        self, concurrent_users: int, api_count: int, delay_ms: int
    ) -> LoadTestComparison:
        """Load test both models under the same user load."""
        return await self.load_tester.compare(concurrent_users, api_count, delay_ms)

    def runtime_info(self) -> dict[str, Any]:
        """Describe the runtime the benchmarks execute on."""
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        context = current.get_name() if current is not None else None
        return {
            "python": sys.version.split()[0],
            "implementation": platform.python_implementation(),
            "platform": platform.platform(),
            "cpuCount": os.cpu_count(),
            "threadCount": psutil.Process().num_threads(),
            "context": context or "main-thread",
            "isPerTask": is_per_task_worker(context),
            "poolCapacity": self.config.pool.capacity,
            "shutdownTimeoutSeconds": self.config.pool.shutdown_timeout_seconds,
            "simulatedEndpoint": self.config.transport.simulated,
            "baseUrl": self.config.transport.base_url,
        }

    async def aclose(self) -> None:
        """Release the transport."""
        await self.transport.aclose()

    async def __aenter__(self) -> "BenchmarkService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
