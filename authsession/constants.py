"""
Configuration constants for the session core

This module contains all configurable constants used throughout the package.
Each numeric or string constant can be overridden by setting an environment
variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Retrieve a non-empty string value from an environment variable."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


# Token lifetime policy
TOKEN_LIFETIME_SECONDS = _get_env_int(
    "TOKEN_LIFETIME_SECONDS", 15 * 60
)  # Access token lifetime issued by the backend (15 min)
TOKEN_REFRESH_BUFFER_SECONDS = _get_env_int(
    "TOKEN_REFRESH_BUFFER_SECONDS", 60
)  # Refresh this many seconds before expiry

# Network/HTTP constants
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout
AUTH_API_BASE_URL = _get_env_str("AUTH_API_BASE_URL", "http://localhost:8080")

# Backend endpoints (fixed)
REFRESH_PATH = "/api/v1/auth/refresh"
LOGOUT_PATH = "/api/v1/auth/logout"
LOGOUT_ALL_SESSIONS_PATH = "/api/v1/auth/logoutAllSessions"

# Persisted local state
ACCESS_TOKEN_KEY = "accessToken"
ACCESS_TOKEN_ISSUED_AT_KEY = "accessTokenIssuedAt"
SETTINGS_KEY = "app.settings"
STORAGE_FILE = _get_env_str(
    "AUTHSESSION_STORAGE_FILE", os.path.join("~", ".authsession", "storage.json")
)
STORAGE_ORIGIN = _get_env_str("AUTHSESSION_ORIGIN", "default")

# Navigation targets used by logout and the route guard
LOGIN_PATH = "/login"
HOME_PATH = "/home"
DEFAULT_AUTHENTICATED_PATH = "/dashboard"
