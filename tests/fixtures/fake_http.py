"""
Fake aiohttp session/response pair for exercising HTTP code without a network
"""

from __future__ import annotations

import asyncio
import json as jsonlib
from collections import defaultdict, deque
from pathlib import Path


class FakeResp:
    def __init__(
        self,
        status: int = 200,
        payload: object | None = None,
        body: str | None = None,
        gate: asyncio.Event | None = None,
        raise_exception: BaseException | None = None,
    ):
        self.status = status
        self._payload = payload
        if body is None:
            body = jsonlib.dumps(payload) if payload is not None else ""
        self._body = body.encode("utf-8")
        self.gate = gate
        self.raise_exception = raise_exception

    async def __aenter__(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.raise_exception:
            raise self.raise_exception
        return self

    async def __aexit__(self, _exc_type, _exc, _tb):
        return False

    async def read(self) -> bytes:
        await asyncio.sleep(0)
        return self._body

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def json(self, content_type: str | None = "application/json"):
        await asyncio.sleep(0)
        return jsonlib.loads(self._body.decode("utf-8"))


class FakeCookieJar:
    """Name to value cookie map with file save/load like aiohttp's jar."""

    def __init__(self):
        self.cookies: dict[str, str] = {}
        self.response_urls: list[object] = []

    def update_cookies(self, cookies, response_url=None) -> None:
        self.cookies.update(cookies)
        self.response_urls.append(response_url)

    def save(self, file_path) -> None:
        Path(file_path).write_text(jsonlib.dumps(self.cookies), encoding="utf-8")

    def load(self, file_path) -> None:
        self.cookies = jsonlib.loads(Path(file_path).read_text(encoding="utf-8"))


class FakeSession:
    """Routes ``(method, url)`` to queued responses.

    The last queued response for a route is reused once the queue is down to
    one entry. Unrouted requests get a 404.
    """

    def __init__(self):
        self._routes: dict[tuple[str, str], deque[FakeResp | BaseException]] = defaultdict(deque)
        self.calls: list[dict] = []
        self.closed = False
        self.cookie_jar = FakeCookieJar()

    def route(self, method: str, url: str, *responses: FakeResp | BaseException) -> None:
        self._routes[(method.upper(), url)].extend(responses)

    def count(self, method: str, url: str) -> int:
        return sum(1 for c in self.calls if c["method"] == method.upper() and c["url"] == url)

    def request(self, method: str, url: str, **kwargs):
        method = method.upper()
        self.calls.append({"method": method, "url": url, **kwargs})
        queue = self._routes.get((method, url))
        if not queue:
            return FakeResp(404, {"error": "not found"})
        item = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    async def close(self):
        self.closed = True
