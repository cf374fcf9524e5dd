"""HTTP client for the backend auth endpoints (refresh / logout)."""

from __future__ import annotations

import logging

import aiohttp

from ..config.model import SessionSettings
from ..constants import LOGOUT_ALL_SESSIONS_PATH, LOGOUT_PATH, REFRESH_PATH
from ..errors.internal import NetworkError, ParsingError, RefreshError, RevocationError


class AuthApiClient:
    """Client for the session-proof authenticated auth endpoints.

    The long-lived session proof is never handled here: it travels as a
    cookie held by the aiohttp session's cookie jar, the same way a browser
    sends it with ``credentials: "include"``.
    """

    def __init__(self, http_session: aiohttp.ClientSession, settings: SessionSettings):
        """Initialize the auth API client.

        Args:
            http_session: HTTP session whose cookie jar carries the session proof.
            settings: Session settings (base URL and timeout).
        """
        self.session = http_session
        self.settings = settings

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.settings.request_timeout_seconds)

    async def refresh(self) -> str:
        """Obtain a new access token using the implicit session proof.

        Returns:
            The new access token.

        Raises:
            RefreshError: On any non-2xx status, transport failure, timeout
                or a response body without a string ``accessToken``.
        """
        url = self.settings.endpoint(REFRESH_PATH)
        logging.debug("🔄 Attempting silent token refresh")
        try:
            async with self.session.post(url, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    raise RefreshError(
                        f"Refresh failed: {resp.status}", data={"status": resp.status}
                    )
                try:
                    payload = await resp.json(content_type=None)
                except ValueError as e:
                    raise ParsingError("Refresh response is not valid JSON") from e
                token = payload.get("accessToken") if isinstance(payload, dict) else None
                if not isinstance(token, str) or not token:
                    raise ParsingError("Missing accessToken in refresh response")
                return token
        except TimeoutError as e:
            raise RefreshError(
                "Refresh failed: timeout", data={"cause": NetworkError.__name__}
            ) from e
        except aiohttp.ClientError as e:
            raise RefreshError(
                f"Refresh failed: network error {type(e).__name__}",
                data={"cause": NetworkError.__name__},
            ) from e
        except ParsingError as e:
            raise RefreshError(
                f"Refresh failed: {str(e)}", data={"cause": ParsingError.__name__}
            ) from e

    async def revoke(self, all_sessions: bool = False) -> None:
        """Revoke the current session (or every session) on the backend.

        Raises:
            RevocationError: On non-2xx status, transport failure or timeout.
        """
        path = LOGOUT_ALL_SESSIONS_PATH if all_sessions else LOGOUT_PATH
        url = self.settings.endpoint(path)
        try:
            async with self.session.post(url, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    raise RevocationError(
                        f"Revocation failed: {resp.status}",
                        data={"status": resp.status, "endpoint": path},
                    )
        except TimeoutError as e:
            raise RevocationError(
                "Revocation failed: timeout", data={"endpoint": path}
            ) from e
        except aiohttp.ClientError as e:
            raise RevocationError(
                f"Revocation failed: network error {type(e).__name__}",
                data={"endpoint": path},
            ) from e
