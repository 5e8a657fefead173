"""Custom exception hierarchy for fanbench."""

from typing import Any


class FanbenchError(Exception):
    """Base exception for all fanbench errors.

    Attributes:
        message: Error message describing what went wrong
        remediation: Optional guidance on how to fix the issue
    """

    def __init__(self, message: str, remediation: str | None = None):
        """Initialize fanbench error.

        Args:
            message: Error message
            remediation: Optional remediation guidance
        """
        super().__init__(message)
        self.remediation = remediation

    def __str__(self) -> str:
        """Return formatted error message with remediation if available."""
        if self.remediation:
            return f"{self.args[0]}\n\nRemediation: {self.remediation}"
        return str(self.args[0])


class InvalidParameterError(FanbenchError):
    """A benchmark parameter is out of range.

    Raised before any work is dispatched, so an invalid call never
    produces partial results.

    Attributes:
        parameter: Name of the offending parameter
        value: Value that was rejected
    """

    def __init__(self, parameter: str, value: Any, requirement: str):
        """Initialize invalid parameter error.

        Args:
            parameter: Name of the offending parameter
            value: Rejected value
            requirement: Human readable constraint, e.g. "must be > 0"
        """
        super().__init__(
            f"Invalid {parameter}={value!r}: {requirement}",
            remediation=f"Re-run with {parameter} adjusted ({parameter} {requirement})",
        )
        self.parameter = parameter
        self.value = value


class AggregationError(FanbenchError):
    """A fan-out batch could not materialize every task result.

    This is fatal for the whole aggregation call (and for any comparison or
    sweep running it). Partial results are never returned.

    Attributes:
        api_count: Number of task units dispatched
        execution_model: Execution model that was running the batch
    """

    def __init__(self, message: str, api_count: int, execution_model: str):
        """Initialize aggregation error.

        Args:
            message: Error message
            api_count: Number of dispatched task units
            execution_model: Execution model tag
        """
        super().__init__(message)
        self.api_count = api_count
        self.execution_model = execution_model
