"""
Standardized Error Handling for Uncork

Engine functions are total: recoverable problems are clamped or resolved
through a documented fallback and surfaced as lowered confidence, never as
an exception to the caller.
"""

import logging
from typing import TypeVar
from pydantic import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class UncorkError(Exception):
    """Base exception for Uncork."""
    pass


class InvalidInputError(UncorkError):
    """Out-of-range ordinal, unparseable date or malformed payload."""
    pass


class InsufficientDataError(UncorkError):
    """Missing age or missing profile."""
    pass


class EstimationUnavailable(UncorkError):
    """The external attribute-estimation collaborator could not answer (retryable)."""
    pass


def recover(error: Exception, operation: str, fallback_value: T) -> T:
    """
    Standardized fail-open handling.

    Args:
        error: Exception that occurred
        operation: Description of operation
        fallback_value: Value to return instead

    Returns:
        fallback_value for every recoverable error, otherwise raises
    """
    if isinstance(error, ValidationError):
        logger.warning(f"Validation failed during {operation}, using fallback: {error.error_count()} error(s)")
        return fallback_value

    if isinstance(error, (InvalidInputError, InsufficientDataError)):
        logger.warning(f"{type(error).__name__} during {operation}, using fallback: {error}")
        return fallback_value

    if isinstance(error, (TypeError, ValueError)):
        logger.warning(f"Malformed input during {operation}, using fallback: {error}")
        return fallback_value

    logger.error(f"Unexpected error during {operation}: {type(error).__name__} - {error}")
    raise UncorkError(f"Unexpected error during {operation}") from error


__all__ = [
    'UncorkError',
    'InvalidInputError',
    'InsufficientDataError',
    'EstimationUnavailable',
    'recover',
]
