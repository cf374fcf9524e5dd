"""Scheduled background token refresh."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from ..errors.handling import log_error
from ..errors.internal import RefreshError
from ..utils import format_duration
from .types import REFRESH_FAILED

if TYPE_CHECKING:
    from .hook_manager import HookManager
    from .token_refresher import TokenRefresher


class ScheduledTask:
    """Cancellable one-shot task that runs ``callback`` after ``delay`` seconds.

    The handle is *pending* while it is waiting. Once the delay has elapsed
    the callback is running (or done) and ``cancel()`` no longer affects it.
    """

    def __init__(
        self,
        callback: Callable[[], Coroutine[Any, Any, Any]],
        delay: float,
        *,
        name: str | None = None,
    ) -> None:
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[Any] | None = None
        self._fired = False
        self._cancelled = False
        self.delay = 0.0
        self._arm(delay)

    @property
    def pending(self) -> bool:
        return (
            self._task is not None
            and not self._task.done()
            and not self._fired
            and not self._cancelled
        )

    @property
    def task(self) -> asyncio.Task[Any] | None:
        return self._task

    def cancel(self) -> bool:
        """Cancel the task if it has not fired yet.

        Returns:
            True if a pending task was cancelled.
        """
        if self._task is None or not self.pending:
            return False
        self._cancelled = True
        self._task.cancel()
        return True

    def reschedule(self, delay: float) -> None:
        """Cancel any pending wait and arm again for ``delay`` seconds."""
        self.cancel()
        self._arm(delay)

    def _arm(self, delay: float) -> None:
        self.delay = max(float(delay), 0.0)
        self._fired = False
        self._cancelled = False
        self._task = asyncio.create_task(self._wait_then_fire(self.delay), name=self._name)

    async def _wait_then_fire(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._fired = True
        await self._callback()


class RefreshScheduler:
    """Owns the single background refresh timer.

    ``start()`` always supersedes a pending timer, so there is never more
    than one. A successful refresh re-arms the timer with the default delay;
    a failed one does not, and the error is delivered to ``refresh_failed``
    hooks instead.
    """

    def __init__(
        self,
        refresher: TokenRefresher,
        hooks: HookManager,
        default_delay: float,
    ) -> None:
        self.refresher = refresher
        self.hooks = hooks
        self.default_delay = default_delay
        self._handle: ScheduledTask | None = None
        # Bumped by stop(); a cycle started under an older generation must not re-arm.
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None and self._handle.pending

    @property
    def handle(self) -> ScheduledTask | None:
        return self._handle

    def start(self, delay: float | None = None) -> ScheduledTask:
        """Arm the refresh timer, cancelling any pending one first."""
        if delay is None:
            delay = self.default_delay
        generation = self._generation

        async def _fire() -> None:
            await self._run_cycle(generation)

        if self._handle is not None:
            if self._handle.cancel():
                logging.debug("⏹️ Superseded pending token refresh timer")
        self._handle = ScheduledTask(_fire, delay, name="token-refresh")
        logging.debug(
            f"⏰ Token refresh scheduled in {format_duration(self._handle.delay)} delay_seconds={self._handle.delay:.1f}"
        )
        return self._handle

    def stop(self) -> None:
        """Cancel the pending timer; calling it with no timer is a no-op."""
        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is not None and handle.cancel():
            logging.debug("⏹️ Cleared token refresh timer")

    async def _run_cycle(self, generation: int) -> None:
        try:
            await self.refresher.refresh()
        except Exception as e:  # noqa: BLE001
            message = (
                "Silent refresh failed"
                if isinstance(e, RefreshError)
                else "Unexpected error during scheduled refresh"
            )
            log_error(message, e, context={"origin": "scheduler"})
            if generation == self._generation:
                await self.hooks.fire(REFRESH_FAILED, e)
            return
        if generation != self._generation:
            logging.debug("Token refresh completed after scheduler stop; not rescheduling")
            return
        self.start()
