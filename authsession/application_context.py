"""Explicitly constructed session context owning all session collaborators."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from types import TracebackType
from typing import Any

import aiohttp
from yarl import URL

from .auth_token.client import AuthApiClient
from .auth_token.credential_store import CredentialStore
from .auth_token.hook_manager import HookManager
from .auth_token.request_client import AuthenticatedRequestClient
from .auth_token.scheduler import RefreshScheduler
from .auth_token.token_refresher import TokenRefresher
from .config.model import SessionSettings
from .config.repository import KeyValueStorage
from .errors.handling import log_error
from .session.route_guard import RouteGuard
from .session.state_machine import Navigator, SessionStateMachine


class SessionContext:
    """Holds one authentication session and its async resources.

    Everything that used to be process-wide (the authenticated flag, the
    refresh timer) lives on an instance, so independent sessions can coexist
    in one process (tests construct one per case).
    """

    # Class / instance attribute type declarations (helps mypy)
    settings: SessionSettings
    session: aiohttp.ClientSession | None
    _owns_session: bool
    _started: bool
    _lock: asyncio.Lock

    def __init__(
        self,
        settings: SessionSettings,
        storage: KeyValueStorage,
        http_session: aiohttp.ClientSession,
        *,
        navigate: Navigator | None = None,
        clock: Callable[[], float] = time.time,
        cookie_file: str | None = None,
    ) -> None:
        self.settings = settings
        self.cookie_file = cookie_file
        self.storage = storage
        self.session = http_session
        self._owns_session = False
        self._started = False
        self._lock = asyncio.Lock()

        self.store = CredentialStore(storage, clock=clock)
        self.hooks = HookManager()
        self.api_client = AuthApiClient(http_session, settings)
        self.refresher = TokenRefresher(self.api_client, self.store, self.hooks)
        self.scheduler = RefreshScheduler(
            self.refresher, self.hooks, default_delay=settings.default_refresh_delay
        )
        self.requests = AuthenticatedRequestClient(
            http_session, self.store, self.refresher, timeout=self.api_client.timeout
        )
        self.state_machine = SessionStateMachine(
            settings,
            self.store,
            self.refresher,
            self.scheduler,
            self.api_client,
            self.hooks,
            navigate=navigate,
            clock=clock,
        )
        self.route_guard = RouteGuard(self.state_machine, settings)
        if cookie_file:
            self._load_cookies(cookie_file)

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        settings: SessionSettings,
        storage: KeyValueStorage,
        *,
        navigate: Navigator | None = None,
        clock: Callable[[], float] = time.time,
        cookie_file: str | None = None,
    ) -> SessionContext:
        """Create a context with its own HTTP session.

        The session's cookie jar carries the backend's long-lived session
        cookie used by the refresh call; ``unsafe=True`` lets it accept
        cookies from IP hosts such as a local development backend. With
        ``cookie_file`` the jar is loaded from that file now and written back
        on shutdown, so the session proof outlives the process.
        """
        logging.debug("🧪 Creating session context")
        http_session = aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar(unsafe=True))
        logging.debug("🔗 HTTP session created")
        ctx = cls(
            settings,
            storage,
            http_session,
            navigate=navigate,
            clock=clock,
            cookie_file=cookie_file,
        )
        ctx._owns_session = True
        return ctx

    # --------------------------- Lifecycle -------------------------- #
    async def start(self) -> None:
        """Run startup reconciliation once; idempotent."""
        async with self._lock:
            if self._started:
                return
            await self.state_machine.init_auth()
            self._started = True
            logging.debug(f"🚀 Session context started state={self.state_machine.state.value}")

    async def shutdown(self) -> None:
        """Stop the refresh timer and release owned resources.

        Stored credentials are left in place so the next run can reconcile
        against them.
        """
        async with self._lock:
            logging.debug("🔻 Session context shutdown initiated")
            self.scheduler.stop()
            await self.hooks.drain()
            self._save_cookies()
            await self._close_http_session()
            self._started = False
            logging.debug("✅ Session context shutdown complete")

    def add_session_cookie(self, name: str, value: str) -> None:
        """Seed the jar with a session cookie issued to the backend origin."""
        if self.session is None:
            raise RuntimeError("session context is shut down")
        self.session.cookie_jar.update_cookies(
            {name: value}, response_url=URL(self.settings.api_base_url)
        )
        logging.debug(f"🍪 Session cookie set name={name}")

    def _load_cookies(self, path: str) -> None:
        if self.session is None or not os.path.exists(path):
            return
        try:
            self.session.cookie_jar.load(path)
            logging.debug(f"🍪 Loaded cookies from {path}")
        except Exception as e:  # noqa: BLE001
            log_error(
                "Could not load cookie file, starting without cookies", e, level=logging.WARNING
            )

    def _save_cookies(self) -> None:
        if not self.cookie_file or self.session is None:
            return
        cookie_dir = os.path.dirname(self.cookie_file)
        try:
            if cookie_dir:
                os.makedirs(cookie_dir, mode=0o700, exist_ok=True)
            # Create owner-only before the jar writes into it.
            os.close(os.open(self.cookie_file, os.O_WRONLY | os.O_CREAT, 0o600))
            os.chmod(self.cookie_file, 0o600)
            self.session.cookie_jar.save(self.cookie_file)
            logging.debug(f"🍪 Saved cookies to {self.cookie_file}")
        except OSError as e:
            log_error("Could not save cookie file", e, level=logging.WARNING)

    async def _close_http_session(self) -> None:
        if not self.session or not self._owns_session:
            return
        try:
            await self.session.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.session = None

    async def __aenter__(self) -> SessionContext:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> Any:
        await self.shutdown()
        return None
