"""Service layer for fanbench."""

from fanbench.services.benchmark_service import BenchmarkService, batch_record

__all__ = ["BenchmarkService", "batch_record"]
