"""Reduction of a batch result into aggregate metrics."""

from fanbench.domain.models import AggregateMetrics, BatchResult


def summarize(batch: BatchResult) -> AggregateMetrics:
    """Compute aggregate metrics for a batch.

    Latency statistics only consider successful tasks and are 0 when there
    are none. Throughput is successes per second of wall-clock time, 0 when
    the batch took no measurable time.

    Args:
        batch: Batch result to reduce

    Returns:
        AggregateMetrics for the batch
    """
    latencies = [r.elapsed_ms for r in batch.results if r.succeeded and r.elapsed_ms is not None]
    successful = len(latencies)
    failed = len(batch.results) - successful

    if latencies:
        avg_ms = sum(latencies) / successful
        min_ms = min(latencies)
        max_ms = max(latencies)
    else:
        avg_ms = min_ms = max_ms = 0.0

    total_seconds = batch.execution_time_ms / 1000
    throughput = successful / total_seconds if total_seconds > 0 else 0.0

    return AggregateMetrics(
        test_name=batch.thread_type.display_name,
        thread_type=batch.thread_type,
        concurrent_users=batch.api_count,
        total_time_ms=batch.execution_time_ms,
        successful_requests=successful,
        failed_requests=failed,
        avg_response_time_ms=avg_ms,
        min_response_time_ms=min_ms,
        max_response_time_ms=max_ms,
        throughput=throughput,
    )


def percentage_change(delta: float, baseline: float) -> float:
    """Express ``delta`` as a percentage of ``baseline``; 0 for a zero baseline."""
    if baseline == 0:
        return 0.0
    return 100.0 * delta / baseline
