"""
Shared builders for session tests
"""

from authsession.config.model import SessionSettings
from authsession.constants import LOGOUT_ALL_SESSIONS_PATH, LOGOUT_PATH, REFRESH_PATH

BASE_URL = "http://auth.test"
REFRESH_URL = f"{BASE_URL}{REFRESH_PATH}"
LOGOUT_URL = f"{BASE_URL}{LOGOUT_PATH}"
LOGOUT_ALL_URL = f"{BASE_URL}{LOGOUT_ALL_SESSIONS_PATH}"
PROTECTED_URL = f"{BASE_URL}/api/v1/projects"

# Fixed "now" used by the fake clock (2023-11-14T22:13:20Z)
NOW = 1_700_000_000.0

REFRESH_SUCCESS = {"accessToken": "T2"}


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> SessionSettings:
    values = {
        "api_base_url": BASE_URL,
        "token_lifetime_seconds": 900,
        "refresh_buffer_seconds": 60,
        "storage_file": "/nonexistent/authsession-test.json",
    }
    values.update(overrides)
    return SessionSettings(**values)
