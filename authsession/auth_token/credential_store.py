"""Durable storage of the access token and its issuance instant."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from ..config.repository import KeyValueStorage
from ..constants import ACCESS_TOKEN_ISSUED_AT_KEY, ACCESS_TOKEN_KEY
from .types import Credential


class CredentialStore:
    """Get/set/clear of the stored credential.

    Token and issuance instant are two entries in the underlying medium and
    are always written and removed in a single storage call. The instant is
    persisted as epoch milliseconds.
    """

    def __init__(
        self, storage: KeyValueStorage, clock: Callable[[], float] = time.time
    ) -> None:
        self.storage = storage
        self.clock = clock

    def save(self, token: str, issued_at: float | None = None) -> Credential:
        if not token:
            raise ValueError("token cannot be empty")
        if issued_at is None:
            issued_at = self.clock()
        issued_ms = int(issued_at * 1000)
        self.storage.set_many(
            {ACCESS_TOKEN_KEY: token, ACCESS_TOKEN_ISSUED_AT_KEY: str(issued_ms)}
        )
        return Credential(token=token, issued_at=issued_ms / 1000)

    def load(self) -> Credential | None:
        """Return the stored credential, or ``None`` if absent or unusable."""
        token = self.storage.get(ACCESS_TOKEN_KEY)
        if not token:
            return None
        raw_issued = self.storage.get(ACCESS_TOKEN_ISSUED_AT_KEY)
        if raw_issued is None:
            logging.debug("❔ Stored token has no issuance timestamp; treating as absent")
            return None
        try:
            issued_ms = float(raw_issued)
        except ValueError:
            logging.debug(
                f"❔ Unparsable token issuance timestamp {raw_issued!r}; treating as absent"
            )
            return None
        if not math.isfinite(issued_ms):
            return None
        return Credential(token=token, issued_at=issued_ms / 1000)

    def clear(self) -> None:
        self.storage.delete_many((ACCESS_TOKEN_KEY, ACCESS_TOKEN_ISSUED_AT_KEY))

    def current_token(self) -> str | None:
        credential = self.load()
        return credential.token if credential else None
