"""Scalability sweep over increasing load levels."""

from fanbench.application.comparison import ComparisonEngine
from fanbench.domain.models import SweepParameters, SweepResult
from fanbench.infrastructure.exceptions import InvalidParameterError
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)


def load_levels(max_count: int, step: int) -> list[int]:
    """Return ``step, 2*step, ...`` up to and including ``max_count``."""
    return list(range(step, max_count + 1, step))


class ScalabilitySweep:
    """Repeats a comparison at ``step, 2*step, ... <= max_count``.

    A sweep is all or nothing: the first failing comparison aborts it.
    """

    def __init__(self, engine: ComparisonEngine):
        self.engine = engine

    async def sweep(self, max_count: int, delay_ms: int, step: int) -> SweepResult:
        """Run comparisons at every load level in ascending order.

        Args:
            max_count: Highest load level (inclusive)
            delay_ms: Artificial delay per request in milliseconds
            step: Distance between load levels

        Returns:
            SweepResult with one ComparisonResult per level

        Raises:
            InvalidParameterError: If step <= 0 or max_count/delay_ms is negative
            AggregationError: If any comparison fails
        """
        if step <= 0:
            raise InvalidParameterError("step", step, "must be > 0")
        if max_count < 0:
            raise InvalidParameterError("max_count", max_count, "must be >= 0")
        if delay_ms < 0:
            raise InvalidParameterError("delay_ms", delay_ms, "must be >= 0")

        levels = load_levels(max_count, step)
        logger.info("sweep_started", levels=levels, delay_ms=delay_ms)

        result = SweepResult(
            test_parameters=SweepParameters(max_api_count=max_count, delay_ms=delay_ms, step=step)
        )
        for count in levels:
            result.results.append(await self.engine.compare(count, delay_ms))

        logger.info("sweep_completed", levels=len(levels))
        return result
