"""Custom exception types for the repository risk pipeline.

This module defines exceptions used throughout the pipeline to provide
clear error classification and recovery strategies.
"""
from typing import Optional


class PipelineError(Exception):
    """Base exception for pipeline-related errors."""

    pass


class ExternalAPIError(PipelineError):
    """
    Raised when an external API call (GitHub, OSV, Claude) fails.

    Optional stages absorb this error and substitute fallback data; the
    repository scan stage lets it propagate because nothing can be scored
    without it.
    """

    def __init__(self, service: str, status_code: Optional[int] = None, message: Optional[str] = None):
        """
        Initialize ExternalAPIError.

        Args:
            service: Name of the external service (e.g., 'GitHub', 'OSV')
            status_code: HTTP status code (if applicable)
            message: Optional additional error details
        """
        self.service = service
        self.status_code = status_code
        self.message = message

        msg = f"External API error: {service}"
        if status_code:
            msg += f" (HTTP {status_code})"
        if message:
            msg += f": {message}"

        super().__init__(msg)


class DataValidationError(PipelineError):
    """
    Raised when input data validation fails.

    Malformed repository references end up here. The input is rejected
    rather than replaced with fallback data.
    """

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        msg = f"Data validation error: {field}={value!r}. Reason: {reason}"
        super().__init__(msg)
