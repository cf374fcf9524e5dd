"""Authentication state machine.

Owns the tri-state authenticated flag and drives the credential store and the
refresh scheduler through login, logout and startup reconciliation.

Transitions (initial state UNKNOWN):

- UNKNOWN --init_auth--> UNAUTHENTICATED when nothing usable is stored,
  AUTHENTICATED when the stored token is still valid (timer armed for the
  remaining lifetime minus the buffer), and either of the two after a
  refresh attempt when the stored token has expired.
- any --login--> AUTHENTICATED
- any --logout / logout_all_sessions--> UNAUTHENTICATED
- AUTHENTICATED --background refresh failure--> UNAUTHENTICATED
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ..auth_token.types import REFRESH_FAILED, STATE_CHANGED, AuthState
from ..errors.handling import log_error
from ..errors.internal import RefreshError, RevocationError
from ..logging_config import token_fingerprint

if TYPE_CHECKING:
    from ..auth_token.client import AuthApiClient
    from ..auth_token.credential_store import CredentialStore
    from ..auth_token.hook_manager import HookManager
    from ..auth_token.scheduler import RefreshScheduler
    from ..auth_token.token_refresher import TokenRefresher
    from ..config.model import SessionSettings

Navigator = Callable[[str], Awaitable[Any] | Any]


class SessionStateMachine:
    """Single source of truth for "am I logged in"."""

    def __init__(
        self,
        settings: SessionSettings,
        store: CredentialStore,
        refresher: TokenRefresher,
        scheduler: RefreshScheduler,
        api_client: AuthApiClient,
        hooks: HookManager,
        navigate: Navigator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.store = store
        self.refresher = refresher
        self.scheduler = scheduler
        self.api_client = api_client
        self.hooks = hooks
        self.navigate = navigate
        self.clock = clock
        self._state = AuthState.UNKNOWN
        self._init_task: asyncio.Task[None] | None = None
        hooks.register(REFRESH_FAILED, self._on_background_refresh_failed)

    # ------------------------------ State ------------------------------ #
    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool | None:
        """Read-only tri-state flag: ``None`` until reconciliation settles."""
        return self._state.flag

    @property
    def settled(self) -> bool:
        return self._state is not AuthState.UNKNOWN

    def _set_state(self, new_state: AuthState) -> None:
        if new_state is AuthState.UNKNOWN:
            raise ValueError("auth state never returns to UNKNOWN")
        old, self._state = self._state, new_state
        if old is not new_state:
            logging.debug(f"🔀 Auth state {old.value} -> {new_state.value}")
            self.hooks.fire_nowait(STATE_CHANGED, new_state)

    # -------------------------- Reconciliation ------------------------- #
    async def init_auth(self) -> None:
        """Resolve UNKNOWN into AUTHENTICATED or UNAUTHENTICATED.

        Runs at most once per app load: concurrent callers share the same
        reconciliation, and calls after it settled return immediately.
        Never raises: refresh and storage failures settle as UNAUTHENTICATED.
        """
        if self.settled and self._init_task is None:
            return
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._reconcile())
        await asyncio.shield(self._init_task)

    async def wait_settled(self) -> AuthState:
        """Await reconciliation (starting it if needed) and return the state."""
        if not self.settled:
            await self.init_auth()
        return self._state

    async def _reconcile(self) -> None:
        try:
            await self._reconcile_stored()
        except Exception as e:  # noqa: BLE001
            # Anything else (storage I/O, malformed responses) still settles the state.
            log_error("Auth reconciliation failed", e, context={"origin": "init_auth"})
            self.scheduler.stop()
            self._clear_store()
            self._set_state(AuthState.UNAUTHENTICATED)

    async def _reconcile_stored(self) -> None:
        credential = self.store.load()
        if credential is None:
            logging.info("🔒 No stored token; clearing any token data")
            self.store.clear()
            self._set_state(AuthState.UNAUTHENTICATED)
            return

        lifetime = self.settings.token_lifetime_seconds
        now = self.clock()
        if credential.is_expired(now, lifetime):
            logging.info("⌛ Stored token expired. Trying silent refresh...")
            try:
                await self.refresher.refresh()
            except RefreshError as e:
                log_error(
                    "Silent refresh failed",
                    e,
                    context={"origin": "init_auth"},
                    level=logging.WARNING,
                )
                self.scheduler.stop()
                self.store.clear()
                self._set_state(AuthState.UNAUTHENTICATED)
                return
            self.scheduler.start()
            self._set_state(AuthState.AUTHENTICATED)
            return

        delay = credential.refresh_delay(now, lifetime, self.settings.refresh_buffer_seconds)
        logging.info(f"✅ Valid stored token token={token_fingerprint(credential.token)}")
        self.scheduler.start(delay)
        self._set_state(AuthState.AUTHENTICATED)

    # ----------------------------- Actions ----------------------------- #
    def login(self, token: str) -> None:
        """Persist a freshly issued token and start its refresh cycle."""
        self.store.save(token, issued_at=self.clock())
        self.scheduler.stop()
        self.scheduler.start()
        self._set_state(AuthState.AUTHENTICATED)
        logging.info("✅ Login successful")

    async def logout(self) -> None:
        """End this session locally; backend revocation is best effort."""
        logging.info("🚪 Logging out and clearing storage")
        await self._end_session(all_sessions=False)
        logging.info("✅ Logout successful")

    async def logout_all_sessions(self) -> None:
        """End this session locally and revoke every session of the account."""
        logging.info("🚪 Logging out of all sessions and clearing storage")
        await self._end_session(all_sessions=True)
        logging.info("✅ Logged out of all sessions")

    async def _end_session(self, *, all_sessions: bool) -> None:
        self.scheduler.stop()
        self.refresher.invalidate()
        try:
            await self.api_client.revoke(all_sessions=all_sessions)
            logging.info(
                "🔐 Backend revoked all sessions" if all_sessions else "🔐 Backend session revoked"
            )
        except RevocationError as e:
            log_error(
                "Backend logout failed",
                e,
                context={"all_sessions": all_sessions},
                level=logging.WARNING,
            )
        self.store.clear()
        self._set_state(AuthState.UNAUTHENTICATED)
        await self._navigate(self.settings.login_path)

    async def _navigate(self, path: str) -> None:
        if self.navigate is None:
            return
        result = self.navigate(path)
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            await result

    async def _on_background_refresh_failed(self, error: BaseException) -> None:
        if self._state is not AuthState.AUTHENTICATED:
            return
        logging.warning(f"🔒 Background refresh failed; signing out locally ({str(error)})")
        self._clear_store()
        self._set_state(AuthState.UNAUTHENTICATED)

    def _clear_store(self) -> None:
        """Best-effort clear used on failure paths that must still settle."""
        try:
            self.store.clear()
        except OSError as e:
            log_error("Could not clear stored token", e, level=logging.WARNING)
