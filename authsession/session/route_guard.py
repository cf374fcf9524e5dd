"""Navigation guard driven by the tri-state authentication flag."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..auth_token.types import AuthState

if TYPE_CHECKING:
    from ..config.model import SessionSettings
    from .state_machine import SessionStateMachine

ROOT_PATH = "/"


@dataclass(frozen=True)
class RouteMeta:
    requires_auth: bool = False
    public_only: bool = False


@dataclass(frozen=True)
class NavigationDecision:
    """Outcome of a guard check: either allow, or redirect to ``redirect``."""

    allow: bool
    redirect: str | None = None
    replace: bool = False

    @classmethod
    def proceed(cls) -> NavigationDecision:
        return cls(allow=True)

    @classmethod
    def redirect_to(cls, path: str) -> NavigationDecision:
        return cls(allow=False, redirect=path, replace=True)


class RouteGuard:
    def __init__(self, state_machine: SessionStateMachine, settings: SessionSettings) -> None:
        self.state_machine = state_machine
        self.settings = settings

    async def resolve(self, path: str, meta: RouteMeta | None = None) -> NavigationDecision:
        """Decide whether navigation to ``path`` may proceed.

        While the state is still UNKNOWN the guard waits for startup
        reconciliation instead of guessing.
        """
        meta = meta or RouteMeta()
        state = await self.state_machine.wait_settled()
        authenticated = state is AuthState.AUTHENTICATED

        if path == ROOT_PATH:
            target = (
                self.settings.default_authenticated_path
                if authenticated
                else self.settings.home_path
            )
            return self._redirect(path, target)
        if meta.requires_auth and not authenticated:
            return self._redirect(path, self.settings.login_path)
        if meta.public_only and authenticated:
            return self._redirect(path, self.settings.default_authenticated_path)
        return NavigationDecision.proceed()

    @staticmethod
    def _redirect(source: str, target: str) -> NavigationDecision:
        logging.debug(f"🧭 Route guard redirect {source} -> {target}")
        return NavigationDecision.redirect_to(target)
