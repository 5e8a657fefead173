"""Core domain models for fanbench.

Every model serializes to a flat camelCase record with
``model_dump(mode="json", by_alias=True)`` (see ``to_record``).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ExecutionModelType(str, Enum):
    """The two execution strategies under comparison."""

    BOUNDED_POOL = "bounded_pool"  # Fixed set of reusable workers
    UNBOUNDED_PER_TASK = "unbounded_per_task"  # One fresh worker per task

    @property
    def display_name(self) -> str:
        return {
            ExecutionModelType.BOUNDED_POOL: "Bounded Pool",
            ExecutionModelType.UNBOUNDED_PER_TASK: "Unbounded Per-Task",
        }[self]

    def worker_name(self, key: str | int) -> str:
        """Name of the asyncio task acting as a worker of this model."""
        if self is ExecutionModelType.BOUNDED_POOL:
            return f"{POOL_WORKER_PREFIX}{key}"
        return f"{PER_TASK_WORKER_PREFIX}{key}"


POOL_WORKER_PREFIX = "pool-worker-"
PER_TASK_WORKER_PREFIX = "task-"


def is_per_task_worker(context: str | None) -> bool:
    """Whether an execution context is a one-shot per-task worker."""
    return context is not None and context.startswith(PER_TASK_WORKER_PREFIX)


class RecordModel(BaseModel):
    """Base for models exposed as camelCase records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class TaskUnit(RecordModel):
    """One virtual request: a target identifier plus an artificial delay."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    target: str
    delay_ms: int = Field(default=0, ge=0)


class TaskResult(RecordModel):
    """Outcome of exactly one task unit.

    Attributes:
        target: Target of the task unit this result belongs to
        elapsed_ms: Request latency, None when the task failed
        error: Failure marker ("<ExceptionType>: <message>"), None on success
        abandoned: True when the worker was cancelled before finishing
        context: Name of the asyncio task that executed the unit
        payload: Response body returned by the endpoint
    """

    target: str
    elapsed_ms: float | None = None
    error: str | None = None
    abandoned: bool = False
    context: str | None = None
    payload: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.elapsed_ms is not None

    @classmethod
    def failure(cls, target: str, error: str, **kwargs: Any) -> "TaskResult":
        """Build a failure marker for a task unit."""
        return cls(target=target, error=error, **kwargs)


class ResourceUsage(RecordModel):
    """Peak process resource usage observed while a batch ran."""

    samples: int = 0
    peak_memory_mb: float = 0.0
    peak_cpu_percent: float = 0.0
    peak_thread_count: int = 0
    peak_task_count: int = 0


class BatchResult(RecordModel):
    """Everything one fan-out call produced.

    ``len(results)`` always equals ``api_count``: every dispatched unit owns
    exactly one slot, success or failure, and ``results[i]`` belongs to the
    unit with target index ``i``.
    """

    execution_time_ms: float = Field(ge=0)
    api_count: int = Field(ge=0)
    results: list[TaskResult] = Field(default_factory=list)
    thread_type: ExecutionModelType
    resource_usage: ResourceUsage | None = None

    @property
    def successes(self) -> list[TaskResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if not r.succeeded]


class AggregateMetrics(RecordModel):
    """Statistics reduced from a single batch result."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    test_name: str
    thread_type: ExecutionModelType
    concurrent_users: int = Field(ge=0)
    total_time_ms: float = Field(ge=0)
    successful_requests: int = Field(ge=0)
    failed_requests: int = Field(ge=0)
    avg_response_time_ms: float = 0.0
    min_response_time_ms: float = 0.0
    max_response_time_ms: float = 0.0
    throughput: float = 0.0  # successful requests per second


class ComparisonResult(RecordModel):
    """Head-to-head metrics for both execution models at one load level.

    The bounded pool is the baseline. Positive improvements mean the
    per-task model did better (less time, more throughput).
    """

    api_count: int = Field(ge=0)
    delay_ms: int = Field(ge=0)
    bounded_pool: AggregateMetrics
    unbounded_per_task: AggregateMetrics
    improvement: float
    improvement_percentage: float
    throughput_improvement: float
    throughput_improvement_percentage: float


class LoadTestComparison(RecordModel):
    """Load test metrics for both execution models under the same user load.

    Each metric counts users, not individual requests: one user is one
    complete fan-out of ``api_count`` requests.
    """

    concurrent_users: int = Field(ge=0)
    api_count: int = Field(ge=0)
    delay_ms: int = Field(ge=0)
    bounded_pool: AggregateMetrics
    unbounded_per_task: AggregateMetrics
    throughput_improvement: float
    throughput_improvement_percentage: float


class SweepParameters(RecordModel):
    """Parameters a scalability sweep ran with."""

    max_api_count: int
    delay_ms: int
    step: int


class SweepResult(RecordModel):
    """Comparison results across increasing load levels, ascending."""

    test_parameters: SweepParameters
    results: list[ComparisonResult] = Field(default_factory=list)

    @property
    def load_levels(self) -> list[int]:
        return [r.api_count for r in self.results]
