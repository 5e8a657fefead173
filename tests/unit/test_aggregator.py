"""Unit tests for the fan-out aggregator."""

from unittest.mock import AsyncMock

import pytest
from fanbench.application.aggregator import FanOutAggregator, build_task_units
from fanbench.application.execution_models import (
    BoundedPoolModel,
    ExecutionModel,
    UnboundedPerTaskModel,
)
from fanbench.application.resource_monitor import ResourceMonitor
from fanbench.application.statistics import summarize
from fanbench.application.task_runner import TaskRunner
from fanbench.domain.models import BatchResult, ExecutionModelType
from fanbench.infrastructure.exceptions import AggregationError, InvalidParameterError
from fanbench.infrastructure.transport import HttpTransport


def test_build_task_units() -> None:
    """Test that targets derive from the index and share the delay."""
    tasks = build_task_units(3, 25)

    assert [t.target for t in tasks] == ["0", "1", "2"]
    assert {t.delay_ms for t in tasks} == {25}


class TestFanOutAggregator:
    """Tests for FanOutAggregator.aggregate()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 7, 64])
    @pytest.mark.parametrize("model_cls", [BoundedPoolModel, UnboundedPerTaskModel])
    async def test_returns_exactly_count_results(
        self, runner: TaskRunner, count: int, model_cls: type[ExecutionModel]
    ) -> None:
        """Test the one-slot-per-unit invariant for both models."""
        batch = await FanOutAggregator().aggregate(count, 0, model_cls(runner))

        assert len(batch.results) == count
        assert batch.api_count == count

    @pytest.mark.asyncio
    async def test_zero_count(self, runner: TaskRunner) -> None:
        """Test that an empty fan-out has all-zero metrics."""
        batch = await FanOutAggregator().aggregate(0, 100, UnboundedPerTaskModel(runner))
        metrics = summarize(batch)

        assert batch.results == []
        assert batch.execution_time_ms < 50
        assert metrics.successful_requests == 0
        assert metrics.failed_requests == 0
        assert metrics.avg_response_time_ms == 0.0
        assert metrics.throughput == 0.0

    @pytest.mark.asyncio
    async def test_per_task_requests_run_concurrently(self, runner: TaskRunner) -> None:
        """Test that 10 requests of 50 ms take about one delay, not ten."""
        batch = await FanOutAggregator().aggregate(10, 50, UnboundedPerTaskModel(runner))

        assert len(batch.successes) == 10
        assert all(r.elapsed_ms is not None and r.elapsed_ms >= 49 for r in batch.results)
        assert batch.execution_time_ms >= 49
        assert batch.execution_time_ms < 10 * 50 / 2

    @pytest.mark.asyncio
    async def test_single_transport_failure_is_isolated(self, failing_transport) -> None:
        """Test that one failing request out of 20 is only counted as failed."""
        http = HttpTransport(transport=failing_transport("13"))
        try:
            batch = await FanOutAggregator().aggregate(
                20, 5, UnboundedPerTaskModel(TaskRunner(http))
            )
        finally:
            await http.aclose()

        metrics = summarize(batch)
        assert metrics.successful_requests == 19
        assert metrics.failed_requests == 1
        assert batch.results[13].error is not None
        assert batch.results[13].error.startswith("ConnectError")

    @pytest.mark.asyncio
    async def test_single_transport_failure_in_bounded_pool(self, failing_transport) -> None:
        """Test failure isolation through the bounded pool."""
        http = HttpTransport(transport=failing_transport("0"))
        try:
            batch = await FanOutAggregator().aggregate(
                20, 5, BoundedPoolModel(TaskRunner(http), capacity=4)
            )
        finally:
            await http.aclose()

        metrics = summarize(batch)
        assert metrics.successful_requests == 19
        assert metrics.failed_requests == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("count", "delay_ms"), [(-1, 0), (5, -10)])
    async def test_invalid_parameters_dispatch_nothing(self, count: int, delay_ms: int) -> None:
        """Test that negative inputs fail before any dispatch."""
        model = AsyncMock(spec=ExecutionModel)
        model.model_type = ExecutionModelType.BOUNDED_POOL

        with pytest.raises(InvalidParameterError):
            await FanOutAggregator().aggregate(count, delay_ms, model)

        model.run_batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_failure_becomes_aggregation_error(self) -> None:
        """Test that a failing barrier aborts the whole call."""
        model = AsyncMock(spec=ExecutionModel)
        model.model_type = ExecutionModelType.UNBOUNDED_PER_TASK
        model.run_batch.side_effect = ExceptionGroup("boom", [RuntimeError("worker died")])

        with pytest.raises(AggregationError) as exc_info:
            await FanOutAggregator().aggregate(3, 0, model)

        assert exc_info.value.api_count == 3
        assert exc_info.value.execution_model == "unbounded_per_task"
        assert isinstance(exc_info.value.__cause__, ExceptionGroup)

    @pytest.mark.asyncio
    async def test_result_count_mismatch_is_aggregation_error(self) -> None:
        """Test that a short batch is never returned as partial data."""
        model = AsyncMock(spec=ExecutionModel)
        model.model_type = ExecutionModelType.BOUNDED_POOL
        model.run_batch.return_value = BatchResult(
            execution_time_ms=1.0,
            api_count=2,
            results=[],
            thread_type=ExecutionModelType.BOUNDED_POOL,
        )

        with pytest.raises(AggregationError, match="Expected 2 task results, got 0"):
            await FanOutAggregator().aggregate(2, 0, model)

    @pytest.mark.asyncio
    async def test_resource_usage_recorded(self, runner: TaskRunner) -> None:
        """Test that a configured monitor attaches peak usage to the batch."""
        aggregator = FanOutAggregator(resource_monitor=ResourceMonitor(sample_interval=0.005))

        batch = await aggregator.aggregate(30, 20, UnboundedPerTaskModel(runner))

        assert batch.resource_usage is not None
        assert batch.resource_usage.samples >= 2
        assert batch.resource_usage.peak_memory_mb > 0
        assert batch.resource_usage.peak_task_count >= 30
