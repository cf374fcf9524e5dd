"""Bearer-authenticated requests with one refresh-and-retry on 401."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from ..errors.internal import (
    REFRESH_FAILED,
    UNAUTHORIZED_AFTER_REFRESH,
    AuthError,
    RefreshError,
)

if TYPE_CHECKING:
    from .credential_store import CredentialStore
    from .token_refresher import TokenRefresher

UNAUTHORIZED = 401


@dataclass
class Request:
    """Outbound request description.

    Attributes:
        method: HTTP method.
        url: Absolute URL.
        headers: Extra headers; any ``Authorization`` header is replaced.
        params: Query string parameters.
        json: JSON body (mutually exclusive with ``data``).
        data: Raw or form body.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    json: Any = None
    data: Any = None


class AuthenticatedRequestClient:
    """Sends requests with the stored bearer token.

    On a 401 the token is refreshed once (through the shared refresher) and
    the request is dispatched a second time. Statuses other than 401 are
    returned untouched. This client never logs the user out; that decision
    belongs to its caller.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        store: CredentialStore,
        refresher: TokenRefresher,
        timeout: aiohttp.ClientTimeout | None = None,
    ) -> None:
        self.session = http_session
        self.store = store
        self.refresher = refresher
        self.timeout = timeout

    async def send(self, request: Request) -> aiohttp.ClientResponse:
        """Dispatch ``request`` with bearer auth.

        Returns:
            The HTTP response with its body already read.

        Raises:
            AuthError: ``"refresh failed"`` if the 401 recovery refresh
                failed, ``"unauthorized after refresh"`` if the retried
                request was rejected again.
            aiohttp.ClientError: Transport failures of the request itself.
        """
        resp = await self._dispatch(request, self.store.current_token())
        if resp.status != UNAUTHORIZED:
            return resp

        logging.warning(f"⚠️ 401 from {request.method} {request.url}; attempting refresh")
        try:
            await self.refresher.refresh()
        except RefreshError as e:
            raise AuthError(REFRESH_FAILED, data={"url": request.url}) from e

        resp = await self._dispatch(request, self.store.current_token())
        if resp.status == UNAUTHORIZED:
            logging.error(f"❌ Still 401 after refresh for {request.method} {request.url}")
            raise AuthError(UNAUTHORIZED_AFTER_REFRESH, data={"url": request.url})
        return resp

    async def get(self, url: str, **kwargs: Any) -> aiohttp.ClientResponse:
        return await self.send(Request("GET", url, **kwargs))

    async def post(self, url: str, **kwargs: Any) -> aiohttp.ClientResponse:
        return await self.send(Request("POST", url, **kwargs))

    async def _dispatch(
        self, request: Request, token: str | None
    ) -> aiohttp.ClientResponse:
        headers = {
            k: v for k, v in request.headers.items() if k.lower() != "authorization"
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs: dict[str, Any] = {"headers": headers}
        if request.params is not None:
            kwargs["params"] = request.params
        if request.json is not None:
            kwargs["json"] = request.json
        if request.data is not None:
            kwargs["data"] = request.data
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        async with self.session.request(request.method, request.url, **kwargs) as resp:
            # Read inside the context so the body stays available after release.
            await resp.read()
            return resp
