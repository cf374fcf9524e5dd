"""Shared types and constants for auth_token module."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AuthState(Enum):
    """Process-wide authentication state.

    Attributes:
        UNKNOWN: Initial value before startup reconciliation.
        AUTHENTICATED: A usable credential is held.
        UNAUTHENTICATED: No usable credential; the user must log in.
    """

    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"

    @property
    def flag(self) -> bool | None:
        """Tri-state flag as exposed to UI code (``None`` while unknown)."""
        if self is AuthState.UNKNOWN:
            return None
        return self is AuthState.AUTHENTICATED


@dataclass(frozen=True)
class Credential:
    """Access token plus the instant it was accepted (epoch seconds).

    Attributes:
        token: Opaque bearer token.
        issued_at: When the token was obtained, in epoch seconds.
    """

    token: str
    issued_at: float

    def expires_at(self, lifetime: float) -> float:
        return self.issued_at + lifetime

    def is_expired(self, now: float, lifetime: float) -> bool:
        return now > self.expires_at(lifetime)

    def refresh_delay(self, now: float, lifetime: float, buffer: float) -> float:
        """Seconds until the background refresh should fire, clamped to >= 0."""
        return max(self.expires_at(lifetime) - buffer - now, 0.0)


# Hook event names
TOKEN_REFRESHED = "token_refreshed"
REFRESH_FAILED = "refresh_failed"
STATE_CHANGED = "state_changed"
