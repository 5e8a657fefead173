"""Execution models: strategies for running a batch of task units concurrently.

There are exactly two, a bounded pool of reusable workers and an unbounded
model that spawns one worker per task. Both run on the event loop as
asyncio tasks and await the same ``execute`` call of their runner, so a
comparison measures only the overhead of the execution model itself.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

from fanbench.application.task_runner import UnitRunner
from fanbench.domain.models import BatchResult, ExecutionModelType, TaskResult, TaskUnit
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)

ABANDONED_ERROR = "Abandoned: worker cancelled after shutdown grace period"

WorkQueue = asyncio.Queue[tuple[int, TaskUnit] | None]


class ExecutionModel(ABC):
    """Runs a batch of task units and reports when all of them finished."""

    model_type: ExecutionModelType

    def __init__(self, runner: UnitRunner):
        """Initialize execution model.

        Args:
            runner: Runner executing a single unit at the task boundary
        """
        self.runner = runner

    @abstractmethod
    async def run_batch(self, tasks: Sequence[TaskUnit]) -> BatchResult:
        """Run every task unit and wait for all of them.

        Args:
            tasks: Task units to run

        Returns:
            BatchResult with exactly one TaskResult per unit, in unit order,
            and the wall-clock time from dispatch to the last result
        """


class BoundedPoolModel(ExecutionModel):
    """Fixed-capacity set of reusable workers fed from a FIFO queue.

    Workers are created per batch (never shared between batches) and pull
    units in submission order. The batch waits, without a time limit, until
    every unit has been picked up by a worker. Only then is the pool shut
    down: each worker gets a stop sentinel and the drain of in-flight units
    is bounded by ``shutdown_timeout``. Workers still busy after it are
    cancelled and their unfilled slots become abandoned failures.
    """

    model_type = ExecutionModelType.BOUNDED_POOL

    def __init__(
        self,
        runner: UnitRunner,
        capacity: int = 200,
        shutdown_timeout: float = 30.0,
    ):
        """Initialize bounded pool.

        Args:
            runner: Runner executing a single unit
            capacity: Maximum number of workers
            shutdown_timeout: Grace period in seconds for in-flight units at shutdown
        """
        super().__init__(runner)
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.shutdown_timeout = shutdown_timeout

    async def run_batch(self, tasks: Sequence[TaskUnit]) -> BatchResult:
        queue: WorkQueue = asyncio.Queue()
        slots: list[TaskResult | None] = [None] * len(tasks)
        # Workers are only spawned for queued work, like a lazily filled thread pool
        worker_count = min(self.capacity, len(tasks))

        for index, unit in enumerate(tasks):
            queue.put_nowait((index, unit))

        logger.info(
            "pool_batch_started",
            task_count=len(tasks),
            workers=worker_count,
            capacity=self.capacity,
        )

        started = time.perf_counter()
        workers = [
            asyncio.create_task(
                self._worker(queue, slots), name=self.model_type.worker_name(n)
            )
            for n in range(worker_count)
        ]

        if workers:
            try:
                await self._dispatch(queue, workers)
                await self._shutdown(queue, workers)
            except asyncio.CancelledError:
                for worker in workers:
                    worker.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
                raise

        abandoned = 0
        results: list[TaskResult] = []
        for index, slot in enumerate(slots):
            if slot is None:
                abandoned += 1
                slot = TaskResult.failure(tasks[index].target, ABANDONED_ERROR, abandoned=True)
            results.append(slot)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "pool_batch_completed",
            task_count=len(tasks),
            abandoned=abandoned,
            execution_time_ms=round(elapsed_ms, 2),
        )
        return BatchResult(
            execution_time_ms=elapsed_ms,
            api_count=len(tasks),
            results=results,
            thread_type=self.model_type,
        )

    async def _dispatch(self, queue: WorkQueue, workers: list[asyncio.Task[None]]) -> None:
        """Wait until every queued unit has been picked up by a worker.

        Workers mark a unit done as soon as they take it, so ``queue.join()``
        returns once nothing is left waiting. A worker can only finish early
        by crashing; that ends the batch.
        """
        dispatched = asyncio.create_task(queue.join(), name="pool-dispatch")
        try:
            await asyncio.wait([dispatched, *workers], return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not dispatched.done():
                dispatched.cancel()
                await asyncio.gather(dispatched, return_exceptions=True)

        if dispatched.cancelled():
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            self._raise_crashes(workers)

    async def _shutdown(self, queue: WorkQueue, workers: list[asyncio.Task[None]]) -> None:
        """Stop the workers, cancelling any still busy after the grace period."""
        for _ in workers:
            queue.put_nowait(None)

        _, pending = await asyncio.wait(workers, timeout=self.shutdown_timeout)
        if pending:
            logger.warning(
                "pool_teardown_forced",
                stragglers=len(pending),
                grace_seconds=self.shutdown_timeout,
            )
            for worker in pending:
                worker.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        self._raise_crashes(workers)

    @staticmethod
    def _raise_crashes(workers: list[asyncio.Task[None]]) -> None:
        # A crashed worker means its slots can't be trusted; same contract as TaskGroup
        crashes = [
            exc
            for w in workers
            if w.done() and not w.cancelled() and (exc := w.exception()) is not None
        ]
        if crashes:
            raise ExceptionGroup("bounded pool worker crashed", crashes)

    async def _worker(self, queue: WorkQueue, slots: list[TaskResult | None]) -> None:
        """Process queued units until the stop sentinel."""
        while True:
            item = await queue.get()
            queue.task_done()
            if item is None:
                return
            index, unit = item
            slots[index] = await self.runner.execute(unit)


class UnboundedPerTaskModel(ExecutionModel):
    """One new short-lived worker per task unit, no admission limit.

    Workers are independent and end as soon as their single unit is done.
    The task group is the barrier: leaving it means every worker finished.
    """

    model_type = ExecutionModelType.UNBOUNDED_PER_TASK

    async def run_batch(self, tasks: Sequence[TaskUnit]) -> BatchResult:
        logger.info("per_task_batch_started", task_count=len(tasks))

        started = time.perf_counter()
        async with asyncio.TaskGroup() as group:
            handles = [
                group.create_task(
                    self.runner.execute(unit), name=self.model_type.worker_name(unit.target)
                )
                for unit in tasks
            ]
        results = [handle.result() for handle in handles]
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "per_task_batch_completed",
            task_count=len(tasks),
            execution_time_ms=round(elapsed_ms, 2),
        )
        return BatchResult(
            execution_time_ms=elapsed_ms,
            api_count=len(tasks),
            results=results,
            thread_type=self.model_type,
        )


def create_execution_model(
    model_type: ExecutionModelType,
    runner: UnitRunner,
    capacity: int = 200,
    shutdown_timeout: float = 30.0,
) -> ExecutionModel:
    """Build the execution model for a model type.

    Args:
        model_type: Which of the two models to build
        runner: Task runner shared by the model's workers
        capacity: Bounded pool capacity (ignored by the per-task model)
        shutdown_timeout: Bounded pool drain grace period in seconds

    Returns:
        A fresh execution model
    """
    if model_type is ExecutionModelType.BOUNDED_POOL:
        return BoundedPoolModel(runner, capacity=capacity, shutdown_timeout=shutdown_timeout)
    if model_type is ExecutionModelType.UNBOUNDED_PER_TASK:
        return UnboundedPerTaskModel(runner)
    raise ValueError(f"Unknown execution model: {model_type!r}")
