from __future__ import annotations

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    AuthError,
    InternalError,
    NetworkError,
    ParsingError,
    RefreshError,
    RevocationError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception to the error-type label used in structured logs."""
    if isinstance(error, NetworkError | aiohttp.ClientError | OSError | TimeoutError):
        return "network"
    if isinstance(error, AuthError | RefreshError):
        return "auth"
    if isinstance(error, RevocationError):
        return "revocation"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int | None = None,
) -> None:
    """Logs an error message with the associated exception details.

    This function formats and logs an error message along with the string
    representation of the exception using structured logging for better
    error tracking and aggregation.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Optional logging level; defaults to ERROR.
    """
    merged = dict(context or {})
    if isinstance(error, InternalError) and error.data:
        for key, value in error.data.items():
            merged.setdefault(key, value)

    kwargs = {} if level is None else {"level": level}
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=merged or None,
        **kwargs,
    )
