"""Infrastructure layer for fanbench."""

from fanbench.infrastructure.config import Config, ConfigManager
from fanbench.infrastructure.exceptions import (
    AggregationError,
    FanbenchError,
    InvalidParameterError,
)
from fanbench.infrastructure.logger import get_logger, setup_logging
from fanbench.infrastructure.simulated_endpoint import SimulatedEndpoint
from fanbench.infrastructure.transport import HttpTransport

__all__ = [
    "AggregationError",
    "Config",
    "ConfigManager",
    "FanbenchError",
    "HttpTransport",
    "InvalidParameterError",
    "SimulatedEndpoint",
    "get_logger",
    "setup_logging",
]
