import asyncio

import pytest
import pytest_asyncio

from authsession.application_context import SessionContext
from authsession.config.repository import MemoryStorage
from authsession.logging_config import error_aggregator
from tests.fixtures.fake_http import FakeSession
from tests.fixtures.session_fixtures import FakeClock, make_settings


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Keep aggregated error counts from leaking between tests."""
    error_aggregator.reset()
    yield
    error_aggregator.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def http() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def navigations() -> list[str]:
    return []


@pytest_asyncio.fixture
async def ctx(settings, storage, http, clock, navigations):
    """A SessionContext wired to fakes; torn down after the test."""
    context = SessionContext(
        settings, storage, http, navigate=navigations.append, clock=clock
    )
    yield context
    await context.shutdown()
    # Let cancelled timer tasks finish unwinding.
    await asyncio.sleep(0)
