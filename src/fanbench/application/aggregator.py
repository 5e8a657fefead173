"""Fan-out/fan-in aggregation of virtual requests."""

from fanbench.application.execution_models import ExecutionModel
from fanbench.application.resource_monitor import ResourceMonitor
from fanbench.domain.models import BatchResult, TaskUnit
from fanbench.infrastructure.exceptions import AggregationError, InvalidParameterError
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)


def validate_load(count: int, delay_ms: int) -> None:
    """Reject negative task counts and delays.

    Raises:
        InvalidParameterError: If count or delay_ms is negative
    """
    if count < 0:
        raise InvalidParameterError("count", count, "must be >= 0")
    if delay_ms < 0:
        raise InvalidParameterError("delay_ms", delay_ms, "must be >= 0")


def build_task_units(count: int, delay_ms: int) -> list[TaskUnit]:
    """Create one virtual request per index, each with the same delay."""
    return [TaskUnit(target=str(index), delay_ms=delay_ms) for index in range(count)]


class FanOutAggregator:
    """Dispatches N task units through an execution model and collects them.

    ``aggregate`` is a full barrier: it returns only once every unit has a
    result. It either returns all ``count`` results or raises.
    """

    def __init__(self, resource_monitor: ResourceMonitor | None = None):
        """Initialize aggregator.

        Args:
            resource_monitor: Optional monitor sampling resource usage per batch
        """
        self.resource_monitor = resource_monitor

    async def aggregate(self, count: int, delay_ms: int, model: ExecutionModel) -> BatchResult:
        """Fan out ``count`` virtual requests and wait for all of them.

        Args:
            count: Number of task units to dispatch
            delay_ms: Artificial delay of every unit in milliseconds
            model: Execution model to dispatch through

        Returns:
            BatchResult with exactly ``count`` task results

        Raises:
            InvalidParameterError: If count or delay_ms is negative (nothing dispatched)
            AggregationError: If the batch could not materialize every result
        """
        validate_load(count, delay_ms)
        tasks = build_task_units(count, delay_ms)

        logger.info(
            "aggregation_started",
            api_count=count,
            delay_ms=delay_ms,
            execution_model=model.model_type.value,
        )

        try:
            if self.resource_monitor is not None:
                async with self.resource_monitor.track() as monitor:
                    batch = await model.run_batch(tasks)
                batch.resource_usage = monitor.get_usage()
            else:
                batch = await model.run_batch(tasks)
        except Exception as e:
            logger.error(
                "aggregation_failed",
                api_count=count,
                execution_model=model.model_type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AggregationError(
                f"Failed to aggregate API results: {type(e).__name__}: {e}",
                api_count=count,
                execution_model=model.model_type.value,
            ) from e

        if len(batch.results) != count:
            raise AggregationError(
                f"Expected {count} task results, got {len(batch.results)}",
                api_count=count,
                execution_model=model.model_type.value,
            )

        logger.info(
            "aggregation_completed",
            api_count=count,
            execution_model=model.model_type.value,
            execution_time_ms=round(batch.execution_time_ms, 2),
            failed=len(batch.failures),
        )
        return batch
