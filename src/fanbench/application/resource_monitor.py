"""Resource monitoring while a batch is running."""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import psutil

from fanbench.domain.models import ResourceUsage
from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ResourceSnapshot:
    """Snapshot of process resource usage."""

    timestamp: float
    cpu_percent: float
    memory_mb: float
    thread_count: int
    task_count: int


class ResourceMonitor:
    """Samples process resource usage in the background during a batch.

    Used to compare the footprint of the two execution models: the bounded
    pool keeps the live task count near its capacity, the per-task model
    lets it grow with the batch size.
    """

    def __init__(self, sample_interval: float = 0.05, max_snapshots: int = 10_000):
        """Initialize resource monitor.

        Args:
            sample_interval: Interval between samples in seconds
            max_snapshots: Maximum number of snapshots kept per tracking window
        """
        self.sample_interval = sample_interval
        self.max_snapshots = max_snapshots
        self.snapshots: list[ResourceSnapshot] = []
        self._monitor_task: asyncio.Task | None = None
        self._process = psutil.Process()

    def get_snapshot(self) -> ResourceSnapshot:
        """Take one resource usage snapshot.

        Returns:
            ResourceSnapshot with current usage
        """
        try:
            task_count = len(asyncio.all_tasks())
        except RuntimeError:
            task_count = 0

        snapshot = ResourceSnapshot(
            timestamp=time.monotonic(),
            # Non-blocking: compares against the previous call
            cpu_percent=self._process.cpu_percent(interval=None),
            memory_mb=self._process.memory_info().rss / (1024 * 1024),
            thread_count=self._process.num_threads(),
            task_count=task_count,
        )

        self.snapshots.append(snapshot)
        if len(self.snapshots) > self.max_snapshots:
            self.snapshots.pop(0)

        return snapshot

    async def start_monitoring(self) -> None:
        """Start background resource sampling."""
        if self._monitor_task is None or self._monitor_task.done():
            self._monitor_task = asyncio.create_task(
                self._monitor_loop(), name="resource-monitor"
            )
            logger.debug("resource_monitoring_started", interval=self.sample_interval)

    async def stop_monitoring(self) -> None:
        """Stop background resource sampling."""
        if self._monitor_task and not self._monitor_task.done():
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            logger.debug("resource_monitoring_stopped", samples=len(self.snapshots))

    async def _monitor_loop(self) -> None:
        """Background task sampling resource usage."""
        while True:
            self.get_snapshot()
            await asyncio.sleep(self.sample_interval)

    @asynccontextmanager
    async def track(self) -> AsyncIterator["ResourceMonitor"]:
        """Sample resources for the duration of the ``async with`` block.

        Snapshots from a previous window are discarded on entry; one final
        snapshot is taken on exit so short batches still report usage.
        """
        self.clear_history()
        self.get_snapshot()
        await self.start_monitoring()
        try:
            yield self
        finally:
            await self.stop_monitoring()
            self.get_snapshot()

    def get_usage(self) -> ResourceUsage:
        """Summarize the current window as peak values."""
        if not self.snapshots:
            return ResourceUsage()

        return ResourceUsage(
            samples=len(self.snapshots),
            peak_memory_mb=max(s.memory_mb for s in self.snapshots),
            peak_cpu_percent=max(s.cpu_percent for s in self.snapshots),
            peak_thread_count=max(s.thread_count for s in self.snapshots),
            peak_task_count=max(s.task_count for s in self.snapshots),
        )

    def clear_history(self) -> None:
        """Clear snapshot history."""
        self.snapshots.clear()
