"""
Unit tests for AuthApiClient (refresh / revoke endpoints).
"""

import aiohttp
import pytest

from authsession.auth_token.client import AuthApiClient
from authsession.errors.internal import RefreshError, RevocationError
from tests.fixtures.fake_http import FakeResp, FakeSession
from tests.fixtures.session_fixtures import (
    LOGOUT_ALL_URL,
    LOGOUT_URL,
    REFRESH_URL,
    make_settings,
)


class TestAuthApiClientRefresh:
    def setup_method(self):
        self.http = FakeSession()
        self.client = AuthApiClient(self.http, make_settings())

    @pytest.mark.asyncio
    async def test_refresh_success_returns_token(self):
        self.http.route("POST", REFRESH_URL, FakeResp(200, {"accessToken": "T2"}))

        token = await self.client.refresh()

        assert token == "T2"
        assert self.http.count("POST", REFRESH_URL) == 1

    @pytest.mark.asyncio
    async def test_refresh_never_sends_bearer_token(self):
        self.http.route("POST", REFRESH_URL, FakeResp(200, {"accessToken": "T2"}))
        await self.client.refresh()
        call = self.http.calls[0]
        assert "headers" not in call or "Authorization" not in (call["headers"] or {})

    @pytest.mark.asyncio
    async def test_refresh_passes_timeout(self):
        self.http.route("POST", REFRESH_URL, FakeResp(200, {"accessToken": "T2"}))
        await self.client.refresh()
        assert self.http.calls[0]["timeout"].total == 30

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 500])
    async def test_refresh_non_2xx_raises_with_status(self, status):
        self.http.route("POST", REFRESH_URL, FakeResp(status, {"message": "nope"}))

        with pytest.raises(RefreshError) as exc_info:
            await self.client.refresh()

        assert exc_info.value.status == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"accessToken": None}, {"accessToken": 42}, {"accessToken": ""}, ["T2"]],
    )
    async def test_refresh_body_without_string_token_raises(self, payload):
        self.http.route("POST", REFRESH_URL, FakeResp(200, payload))
        with pytest.raises(RefreshError):
            await self.client.refresh()

    @pytest.mark.asyncio
    async def test_refresh_invalid_json_raises(self):
        self.http.route("POST", REFRESH_URL, FakeResp(200, body="<html>oops</html>"))
        with pytest.raises(RefreshError) as exc_info:
            await self.client.refresh()
        assert exc_info.value.data["cause"] == "ParsingError"

    @pytest.mark.asyncio
    async def test_refresh_transport_error_raises(self):
        self.http.route("POST", REFRESH_URL, aiohttp.ClientConnectionError("refused"))
        with pytest.raises(RefreshError) as exc_info:
            await self.client.refresh()
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_refresh_timeout_raises(self):
        self.http.route("POST", REFRESH_URL, FakeResp(200, raise_exception=TimeoutError()))
        with pytest.raises(RefreshError, match="timeout"):
            await self.client.refresh()


class TestAuthApiClientRevoke:
    def setup_method(self):
        self.http = FakeSession()
        self.client = AuthApiClient(self.http, make_settings())

    @pytest.mark.asyncio
    async def test_revoke_current_session(self):
        self.http.route("POST", LOGOUT_URL, FakeResp(204))
        await self.client.revoke()
        assert self.http.count("POST", LOGOUT_URL) == 1
        assert self.http.count("POST", LOGOUT_ALL_URL) == 0

    @pytest.mark.asyncio
    async def test_revoke_all_sessions(self):
        self.http.route("POST", LOGOUT_ALL_URL, FakeResp(200))
        await self.client.revoke(all_sessions=True)
        assert self.http.count("POST", LOGOUT_ALL_URL) == 1

    @pytest.mark.asyncio
    async def test_revoke_failure_status_raises(self):
        self.http.route("POST", LOGOUT_URL, FakeResp(500))
        with pytest.raises(RevocationError) as exc_info:
            await self.client.revoke()
        assert exc_info.value.data["status"] == 500

    @pytest.mark.asyncio
    async def test_revoke_transport_error_raises(self):
        self.http.route("POST", LOGOUT_URL, aiohttp.ServerDisconnectedError())
        with pytest.raises(RevocationError):
            await self.client.revoke()
