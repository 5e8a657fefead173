"""Application services for fanbench."""

from fanbench.application.aggregator import FanOutAggregator
from fanbench.application.comparison import ComparisonEngine
from fanbench.application.execution_models import (
    BoundedPoolModel,
    ExecutionModel,
    UnboundedPerTaskModel,
    create_execution_model,
)
from fanbench.application.load_test import LoadTester, UserSessionRunner
from fanbench.application.resource_monitor import ResourceMonitor, ResourceSnapshot
from fanbench.application.statistics import summarize
from fanbench.application.sweep import ScalabilitySweep
from fanbench.application.task_runner import TaskRunner

__all__ = [
    "BoundedPoolModel",
    "ComparisonEngine",
    "ExecutionModel",
    "FanOutAggregator",
    "LoadTester",
    "ResourceMonitor",
    "ResourceSnapshot",
    "ScalabilitySweep",
    "TaskRunner",
    "UnboundedPerTaskModel",
    "UserSessionRunner",
    "create_execution_model",
    "summarize",
]
