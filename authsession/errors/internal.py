"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the session core. Never
surface raw aiohttp / JSON errors to callers; wrap them instead.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transport failures and timeouts.
  ParsingError         – Response parsing / schema issues.
  RefreshError         – The token renewal call did not succeed.
  RevocationError      – A backend logout call did not succeed.
  AuthError            – Terminal failure of an authenticated request.

A missing stored credential is not an error: ``CredentialStore.load`` returns
``None`` for it.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors."""


class ParsingError(InternalError):
    """Exception raised for malformed or unexpected response bodies."""


class RefreshError(InternalError):
    """Exception raised when the silent refresh call fails.

    Absorbed by reconciliation and the background scheduler (they turn it into
    a state change); surfaced to request callers only as ``AuthError``.
    """

    @property
    def status(self) -> int | None:
        status = self.data.get("status")
        return status if isinstance(status, int) else None


class RevocationError(InternalError):
    """Exception raised when a backend logout / logout-all call fails.

    Logged and swallowed by the state machine; local logout always proceeds.
    """


class AuthError(InternalError):
    """Terminal failure of an authenticated request.

    The message is either ``"refresh failed"`` or
    ``"unauthorized after refresh"``.
    """


REFRESH_FAILED = "refresh failed"
UNAUTHORIZED_AFTER_REFRESH = "unauthorized after refresh"


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "RefreshError",
    "RevocationError",
    "AuthError",
    "REFRESH_FAILED",
    "UNAUTHORIZED_AFTER_REFRESH",
]
