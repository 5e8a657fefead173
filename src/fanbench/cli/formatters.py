"""Rich table rendering for benchmark results."""

from rich.table import Table
from rich.text import Text

from fanbench.domain.models import (
    AggregateMetrics,
    ComparisonResult,
    LoadTestComparison,
    SweepResult,
)

METRIC_ROWS: list[tuple[str, str, str]] = [
    ("Total time", "total_time_ms", "{:.1f} ms"),
    ("Successful", "successful_requests", "{}"),
    ("Failed", "failed_requests", "{}"),
    ("Avg latency", "avg_response_time_ms", "{:.1f} ms"),
    ("Min latency", "min_response_time_ms", "{:.1f} ms"),
    ("Max latency", "max_response_time_ms", "{:.1f} ms"),
    ("Throughput", "throughput", "{:.1f} req/s"),
]


def format_improvement(percentage: float) -> Text:
    """Color a percentage green when the per-task model did better, red otherwise."""
    if percentage > 0:
        return Text(f"+{percentage:.1f}%", style="green")
    if percentage < 0:
        return Text(f"{percentage:.1f}%", style="red")
    return Text("0.0%", style="dim")


def metrics_table(metrics: AggregateMetrics, unit: str = "requests") -> Table:
    """Render one model's aggregate metrics.

    Args:
        metrics: Metrics to render
        unit: What the counts refer to ("requests", or "users" for load tests)
    """
    table = Table(title=f"{metrics.test_name} ({metrics.concurrent_users} {unit})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, field, fmt in METRIC_ROWS:
        if field == "throughput" and unit == "users":
            fmt = "{:.1f} users/s"
        value = fmt.format(getattr(metrics, field))
        if field == "failed_requests" and metrics.failed_requests:
            table.add_row(label, Text(value, style="red"))
        else:
            table.add_row(label, value)
    return table


def comparison_table(comparison: ComparisonResult) -> Table:
    """Render both models side by side with the improvement column."""
    table = Table(
        title=f"Bounded Pool vs Unbounded Per-Task "
        f"({comparison.api_count} requests, {comparison.delay_ms} ms delay)"
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Bounded Pool", justify="right")
    table.add_column("Unbounded Per-Task", justify="right")

    for label, field, fmt in METRIC_ROWS:
        table.add_row(
            label,
            fmt.format(getattr(comparison.bounded_pool, field)),
            fmt.format(getattr(comparison.unbounded_per_task, field)),
        )

    table.add_section()
    table.add_row(
        "Time improvement",
        f"{comparison.improvement:.1f} ms",
        format_improvement(comparison.improvement_percentage),
    )
    table.add_row(
        "Throughput improvement",
        f"{comparison.throughput_improvement:.1f} req/s",
        format_improvement(comparison.throughput_improvement_percentage),
    )
    return table


def load_test_table(comparison: LoadTestComparison) -> Table:
    """Render both load tests side by side; rows count users, not requests."""
    table = Table(
        title=f"Load test: {comparison.concurrent_users} users x "
        f"{comparison.api_count} requests ({comparison.delay_ms} ms delay)"
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Bounded Pool", justify="right")
    table.add_column("Unbounded Per-Task", justify="right")

    for label, field, fmt in METRIC_ROWS:
        if field == "throughput":
            fmt = "{:.1f} users/s"
        table.add_row(
            label,
            fmt.format(getattr(comparison.bounded_pool, field)),
            fmt.format(getattr(comparison.unbounded_per_task, field)),
        )

    table.add_section()
    table.add_row(
        "Throughput improvement",
        f"{comparison.throughput_improvement:.1f} users/s",
        format_improvement(comparison.throughput_improvement_percentage),
    )
    return table


def sweep_table(sweep: SweepResult) -> Table:
    """Render one row per load level."""
    params = sweep.test_parameters
    table = Table(
        title=f"Scalability sweep (step {params.step} up to {params.max_api_count}, "
        f"{params.delay_ms} ms delay)"
    )
    table.add_column("Requests", justify="right", style="cyan")
    table.add_column("Pool ms", justify="right")
    table.add_column("Per-task ms", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Pool req/s", justify="right")
    table.add_column("Per-task req/s", justify="right")
    table.add_column("Throughput", justify="right")
    table.add_column("Failed", justify="right")

    for result in sweep.results:
        failed = result.bounded_pool.failed_requests + result.unbounded_per_task.failed_requests
        table.add_row(
            str(result.api_count),
            f"{result.bounded_pool.total_time_ms:.1f}",
            f"{result.unbounded_per_task.total_time_ms:.1f}",
            format_improvement(result.improvement_percentage),
            f"{result.bounded_pool.throughput:.1f}",
            f"{result.unbounded_per_task.throughput:.1f}",
            format_improvement(result.throughput_improvement_percentage),
            Text(str(failed), style="red") if failed else "0",
        )
    return table
