"""Unit tests for the statistics collector."""

import math

import pytest
from fanbench.application.statistics import percentage_change, summarize
from fanbench.domain.models import BatchResult, ExecutionModelType, TaskResult


def make_batch(
    results: list[TaskResult],
    execution_time_ms: float = 1000.0,
    thread_type: ExecutionModelType = ExecutionModelType.BOUNDED_POOL,
) -> BatchResult:
    return BatchResult(
        execution_time_ms=execution_time_ms,
        api_count=len(results),
        results=results,
        thread_type=thread_type,
    )


class TestSummarize:
    """Tests for summarize()."""

    def test_latency_stats_over_successes_only(self) -> None:
        """Test that failures don't contribute to latency statistics."""
        batch = make_batch(
            [
                TaskResult(target="0", elapsed_ms=100.0),
                TaskResult(target="1", elapsed_ms=300.0),
                TaskResult.failure("2", "ReadTimeout: timed out"),
                TaskResult(target="3", elapsed_ms=200.0),
            ],
            execution_time_ms=500.0,
        )

        metrics = summarize(batch)

        assert metrics.successful_requests == 3
        assert metrics.failed_requests == 1
        assert metrics.avg_response_time_ms == pytest.approx(200.0)
        assert metrics.min_response_time_ms == 100.0
        assert metrics.max_response_time_ms == 300.0
        assert metrics.throughput == pytest.approx(6.0)  # 3 successes in 0.5 s
        assert metrics.concurrent_users == 4
        assert metrics.test_name == "Bounded Pool"

    def test_zero_successes_defaults_to_zero(self) -> None:
        """Test that a batch with only failures reports zero latencies."""
        batch = make_batch([TaskResult.failure(str(i), "boom") for i in range(5)])

        metrics = summarize(batch)

        assert metrics.successful_requests == 0
        assert metrics.failed_requests == 5
        assert metrics.avg_response_time_ms == 0.0
        assert metrics.min_response_time_ms == 0.0
        assert metrics.max_response_time_ms == 0.0
        assert metrics.throughput == 0.0

    def test_empty_batch(self) -> None:
        """Test that an empty batch with zero time has no NaN or infinity."""
        metrics = summarize(make_batch([], execution_time_ms=0.0))

        values = [
            metrics.total_time_ms,
            metrics.avg_response_time_ms,
            metrics.min_response_time_ms,
            metrics.max_response_time_ms,
            metrics.throughput,
        ]
        assert all(v == 0.0 for v in values)
        assert all(math.isfinite(v) for v in values)
        assert metrics.successful_requests == 0
        assert metrics.failed_requests == 0

    def test_zero_time_with_successes_has_zero_throughput(self) -> None:
        """Test that throughput is 0, not infinite, when no time elapsed."""
        metrics = summarize(make_batch([TaskResult(target="0", elapsed_ms=0.0)], 0.0))

        assert metrics.successful_requests == 1
        assert metrics.throughput == 0.0

    def test_abandoned_slots_count_as_failures(self) -> None:
        """Test that abandoned slots are never counted as successes."""
        batch = make_batch(
            [
                TaskResult(target="0", elapsed_ms=10.0),
                TaskResult.failure("1", "Abandoned", abandoned=True),
            ]
        )

        metrics = summarize(batch)

        assert metrics.successful_requests == 1
        assert metrics.failed_requests == 1

    def test_test_name_follows_thread_type(self) -> None:
        """Test that metrics are labelled with the model's display name."""
        batch = make_batch([], thread_type=ExecutionModelType.UNBOUNDED_PER_TASK)

        assert summarize(batch).test_name == "Unbounded Per-Task"


class TestPercentageChange:
    """Tests for percentage_change()."""

    def test_regular_baseline(self) -> None:
        assert percentage_change(25.0, 200.0) == pytest.approx(12.5)

    def test_negative_delta(self) -> None:
        assert percentage_change(-50.0, 100.0) == pytest.approx(-50.0)

    def test_zero_baseline(self) -> None:
        """Test that a zero baseline yields 0 instead of a division error."""
        assert percentage_change(10.0, 0.0) == 0.0
        assert percentage_change(0.0, 0.0) == 0.0
