"""Head-to-head comparison of the two execution models."""

from collections.abc import Callable

from fanbench.application.aggregator import FanOutAggregator, validate_load
from fanbench.application.execution_models import ExecutionModel
from fanbench.application.statistics import percentage_change, summarize
from fanbench.domain.models import AggregateMetrics, ComparisonResult, ExecutionModelType
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)

ModelFactory = Callable[[ExecutionModelType], ExecutionModel]


class ComparisonEngine:
    """Runs the same load through both execution models and diffs the metrics.

    The bounded pool always runs first and is the baseline. The two runs are
    strictly sequential so they never compete for the event loop or the
    transport.
    """

    def __init__(self, aggregator: FanOutAggregator, model_factory: ModelFactory):
        """Initialize comparison engine.

        Args:
            aggregator: Aggregator used for both runs
            model_factory: Builds a fresh execution model per run
        """
        self.aggregator = aggregator
        self.model_factory = model_factory

    async def run_model(
        self, model_type: ExecutionModelType, count: int, delay_ms: int
    ) -> AggregateMetrics:
        """Aggregate and summarize one run of a single model."""
        batch = await self.aggregator.aggregate(count, delay_ms, self.model_factory(model_type))
        return summarize(batch)

    async def compare(self, count: int, delay_ms: int) -> ComparisonResult:
        """Compare both models under identical parameters.

        Args:
            count: Number of virtual requests per run
            delay_ms: Artificial delay per request in milliseconds

        Returns:
            ComparisonResult with both metrics and the improvements

        Raises:
            InvalidParameterError: If count or delay_ms is negative
            AggregationError: If either run fails as a whole
        """
        validate_load(count, delay_ms)

        bounded = await self.run_model(ExecutionModelType.BOUNDED_POOL, count, delay_ms)
        unbounded = await self.run_model(ExecutionModelType.UNBOUNDED_PER_TASK, count, delay_ms)

        # Lower time is better, higher throughput is better
        improvement = bounded.total_time_ms - unbounded.total_time_ms
        throughput_improvement = unbounded.throughput - bounded.throughput

        result = ComparisonResult(
            api_count=count,
            delay_ms=delay_ms,
            bounded_pool=bounded,
            unbounded_per_task=unbounded,
            improvement=improvement,
            improvement_percentage=percentage_change(improvement, bounded.total_time_ms),
            throughput_improvement=throughput_improvement,
            throughput_improvement_percentage=percentage_change(
                throughput_improvement, bounded.throughput
            ),
        )

        logger.info(
            "comparison_completed",
            api_count=count,
            delay_ms=delay_ms,
            bounded_ms=round(bounded.total_time_ms, 2),
            unbounded_ms=round(unbounded.total_time_ms, 2),
            improvement_percentage=round(result.improvement_percentage, 2),
        )
        return result
