"""
Exception hierarchy for Cedar.

Backend failures are raised by provider implementations and caught by the
orchestration layer, which turns them into fallback artifacts or failed
routing results. Nothing here is meant to terminate a research run.
"""

from typing import Any, Optional


class CedarError(Exception):
    """Base exception for all Cedar errors."""

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class BackendError(CedarError):
    """A backend request failed at the application level."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
        raw_error: Optional[Exception] = None
    ):
        """
        Initialize BackendError.

        Args:
            operation: Backend command that failed (e.g. "initialize_research")
            message: Human-readable error message
            status_code: HTTP status code, if the transport has one
            raw_error: Underlying exception
        """
        self.operation = operation
        self.status_code = status_code
        self.raw_error = raw_error
        super().__init__(message)

    def __str__(self):
        parts = [f"{self.operation}: {self.message}"]
        if self.status_code:
            parts.append(f"status={self.status_code}")
        return " | ".join(parts)


class BackendConnectionError(BackendError):
    """The backend could not be reached (connect error, timeout)."""
    pass


class GenerationError(CedarError):
    """Generating the artifact for a workflow step failed."""

    def __init__(self, step_type: str, message: str):
        self.step_type = step_type
        super().__init__(message)

    def __str__(self):
        return f"[{self.step_type}] {self.message}"


class RoutingError(CedarError):
    """A persistence call issued by the data router failed."""

    def __init__(self, step_type: str, message: str, calls_issued: int = 0):
        self.step_type = step_type
        self.calls_issued = calls_issued
        super().__init__(message)


class InvariantViolation(CedarError):
    """The workflow was driven in a way its state does not allow."""
    pass
