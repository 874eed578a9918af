"""Standardized Error Handling Utilities

Provides the exception hierarchy used across framecheck together with the
helpers that translate foreign exceptions (Pillow, OS, zlib) into it.
"""

from __future__ import annotations

import logging
import traceback
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .verifier import VerificationReport


class ErrorLevel(Enum):
    """Error severity levels for consistent logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class IssueKind(Enum):
    """Kinds of discrepancy accumulated during a verification run."""

    TOLERANCE_EXCEEDED = "tolerance_exceeded"
    RATE_MISMATCH = "rate_mismatch"
    COUNT_MISMATCH = "count_mismatch"


class FrameCheckError(Exception):
    """Base exception class for all framecheck errors."""

    def __init__(
        self, message: str, cause: Exception | None = None, context: dict | None = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause:
            return f"{base_msg} (caused by: {self.cause})"
        return base_msg


class ResourceError(FrameCheckError):
    """Raised when a golden or diagnostic animation cannot be opened, read or written."""

    pass


class ConfigurationError(FrameCheckError):
    """Raised when configuration or constructor arguments are invalid."""

    pass


class VerifierStateError(FrameCheckError):
    """Raised when a verifier is driven out of its lifecycle order."""

    pass


class VerificationFailure(FrameCheckError, AssertionError):
    """Raised by ``assert_finished`` when the actual animation does not match.

    Subclasses ``AssertionError`` so test runners report a failed test, not an error.
    """

    def __init__(self, message: str, report: VerificationReport | None = None):
        super().__init__(message)
        self.report = report


def handle_error(
    error: Exception,
    operation: str,
    error_type: type[FrameCheckError] = ResourceError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
    reraise: bool = True,
) -> FrameCheckError | None:
    """Standardized error handling with consistent logging and error transformation.

    Args:
        error: Original exception that occurred
        operation: Description of operation that failed
        error_type: Type of FrameCheckError to raise
        level: Logging level for the error
        context: Additional context information
        logger: Logger to use (defaults to module logger)
        reraise: Whether to reraise the transformed exception

    Returns:
        The transformed error if reraise=False, otherwise None

    Raises:
        FrameCheckError: Transformed error if reraise=True
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    message = f"Failed to {operation}: {error}"

    error_context = dict(context or {})
    error_context.update(
        {
            "operation": operation,
            "original_error_type": type(error).__name__,
        }
    )

    transformed_error = error_type(message, cause=error, context=error_context)

    log_message = f"🚨 {operation.capitalize()} failed: {error}"
    context_str = ", ".join(f"{k}={v}" for k, v in error_context.items())
    if context_str:
        log_message += f" (context: {context_str})"

    log_func = getattr(logger, level.value)
    log_func(log_message)

    if level in [ErrorLevel.ERROR, ErrorLevel.CRITICAL]:
        logger.debug(f"Traceback for {operation}: {traceback.format_exc()}")

    if reraise:
        raise transformed_error from error
    return transformed_error


@contextmanager
def error_context(
    operation: str,
    error_type: type[FrameCheckError] = ResourceError,
    level: ErrorLevel = ErrorLevel.ERROR,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> Any:
    """Context manager for standardized error handling.

    Usage:
        with error_context("open golden animation", ResourceError, context={'path': p}):
            reader = ApngReader(fp)

    Args:
        operation: Description of operation being performed
        error_type: Type of FrameCheckError to raise on failure
        level: Logging level for errors
        context: Additional context information
        logger: Logger to use
    """
    try:
        yield
    except FrameCheckError:
        # Already classified
        raise
    except Exception as e:
        handle_error(e, operation, error_type, level, context, logger, reraise=True)
