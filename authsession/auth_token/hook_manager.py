"""Hook management for token and session events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

Hook = Callable[..., Coroutine[Any, Any, None]]


class HookManager:
    """Manages registration and firing of per-event coroutine hooks.

    Events used by the session core: ``token_refreshed`` (new credential),
    ``refresh_failed`` (error from a background refresh) and
    ``state_changed`` (new ``AuthState``).
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = {}
        # Retained background tasks to prevent premature GC.
        self._hook_tasks: set[asyncio.Task[Any]] = set()

    def register(self, event: str, hook: Hook) -> None:
        """Register a coroutine hook for ``event``.

        Hooks are additive (multiple hooks can be registered per event).
        """
        self._hooks.setdefault(event, []).append(hook)

    def unregister(self, event: str, hook: Hook) -> None:
        hooks = self._hooks.get(event)
        if hooks and hook in hooks:
            hooks.remove(hook)

    async def fire(self, event: str, *args: Any) -> None:
        """Await every hook for ``event`` in registration order.

        A failing hook is logged and does not prevent the others from running.
        """
        for hook in list(self._hooks.get(event, ())):
            try:
                await hook(*args)
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Hook error event={event} type={type(e).__name__} error={str(e)}"
                )

    def fire_nowait(self, event: str, *args: Any) -> list[asyncio.Task[Any]]:
        """Schedule hooks for ``event`` as retained fire-and-forget tasks.

        Used from synchronous code paths; requires a running event loop when
        any hook is registered.
        """
        hooks = list(self._hooks.get(event, ()))
        return [self._create_retained_task(hook(*args), category=event) for hook in hooks]

    async def drain(self) -> None:
        """Wait for all retained fire-and-forget hook tasks to finish."""
        while self._hook_tasks:
            await asyncio.gather(*list(self._hook_tasks), return_exceptions=True)

    def _create_retained_task(
        self, coro: Coroutine[Any, Any, Any], *, category: str
    ) -> asyncio.Task[Any]:
        """Create and retain a background task with exception logging."""
        task: asyncio.Task[Any] = asyncio.create_task(coro)
        self._hook_tasks.add(task)

        def _cb(t: asyncio.Task[Any]) -> None:
            self._hook_tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc:
                logging.warning(
                    f"⚠️ Hook task error category={category} error={str(exc)} type={type(exc).__name__}"
                )

        task.add_done_callback(_cb)
        return task
