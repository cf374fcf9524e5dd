"""Token refresh logic."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ..errors.internal import RefreshError
from ..logging_config import token_fingerprint
from .types import TOKEN_REFRESHED, Credential

if TYPE_CHECKING:
    from .client import AuthApiClient
    from .credential_store import CredentialStore
    from .hook_manager import HookManager


class TokenRefresher:
    """Runs the refresh protocol with single-flight semantics.

    Every caller (background scheduler, 401 recovery, startup reconciliation)
    goes through :meth:`refresh`. While one refresh is in flight, further
    callers attach to it and share its outcome instead of issuing another
    network call.
    """

    def __init__(
        self, client: AuthApiClient, store: CredentialStore, hooks: HookManager
    ) -> None:
        self.client = client
        self.store = store
        self.hooks = hooks
        self._inflight: asyncio.Task[Credential] | None = None
        self._epoch = 0

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def refresh(self) -> Credential:
        """Obtain and persist a new access token.

        Returns:
            The newly stored credential.

        Raises:
            RefreshError: If the renewal call failed, or the session was
                ended while the call was in flight.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._refresh_once(self._epoch))
            task.add_done_callback(self._on_done)
            self._inflight = task
        else:
            logging.debug("🔗 Joining in-flight token refresh")
        # Shield so one cancelled waiter does not abort the shared refresh.
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """Discard the result of any refresh currently in flight.

        Called when the session ends so a late response cannot write a
        credential back after logout. The doomed flight is detached so the
        next caller starts a fresh one instead of joining it.
        """
        self._epoch += 1
        self._inflight = None

    async def _refresh_once(self, epoch: int) -> Credential:
        token = await self.client.refresh()
        if epoch != self._epoch:
            logging.info("🗑️ Discarding refreshed token: session ended during refresh")
            raise RefreshError("Refresh result discarded: session ended")
        credential = self.store.save(token)
        logging.info(f"✅ Token refreshed token={token_fingerprint(token)}")
        await self.hooks.fire(TOKEN_REFRESHED, credential)
        return credential

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        if self._inflight is task:
            self._inflight = None
        # Mark the exception as retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()
