"""
Unit tests for HookManager.
"""

import logging
from unittest.mock import AsyncMock

import pytest

from authsession.auth_token.hook_manager import HookManager


class TestHookManager:
    def setup_method(self):
        self.hooks = HookManager()

    @pytest.mark.asyncio
    async def test_fire_runs_hooks_in_order(self):
        calls = []

        async def first(value):
            calls.append(("first", value))

        async def second(value):
            calls.append(("second", value))

        self.hooks.register("evt", first)
        self.hooks.register("evt", second)
        await self.hooks.fire("evt", 1)

        assert calls == [("first", 1), ("second", 1)]

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_stop_others(self, caplog):
        async def broken(_value):
            raise RuntimeError("boom")

        later = AsyncMock()
        self.hooks.register("evt", broken)
        self.hooks.register("evt", later)

        with caplog.at_level(logging.WARNING):
            await self.hooks.fire("evt", 1)

        later.assert_awaited_once_with(1)
        assert "Hook error event=evt" in caplog.text

    @pytest.mark.asyncio
    async def test_unregister(self):
        hook = AsyncMock()
        self.hooks.register("evt", hook)
        self.hooks.unregister("evt", hook)
        self.hooks.unregister("evt", hook)
        await self.hooks.fire("evt")
        hook.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fire_nowait_and_drain(self):
        hook = AsyncMock()
        self.hooks.register("evt", hook)

        tasks = self.hooks.fire_nowait("evt", "x")
        assert len(tasks) == 1
        await self.hooks.drain()

        hook.assert_awaited_once_with("x")

    def test_fire_nowait_without_hooks_needs_no_loop(self):
        assert self.hooks.fire_nowait("evt") == []
