"""fanbench - bounded pool vs unbounded per-task fan-out benchmarks."""

__version__ = "0.1.0"
