"""Domain models for fanbench."""

from fanbench.domain.models import (
    AggregateMetrics,
    BatchResult,
    ComparisonResult,
    ExecutionModelType,
    LoadTestComparison,
    ResourceUsage,
    SweepParameters,
    SweepResult,
    TaskResult,
    TaskUnit,
)

__all__ = [
    "AggregateMetrics",
    "BatchResult",
    "ComparisonResult",
    "ExecutionModelType",
    "LoadTestComparison",
    "ResourceUsage",
    "SweepParameters",
    "SweepResult",
    "TaskResult",
    "TaskUnit",
]
