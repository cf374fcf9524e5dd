from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .. import constants


class SessionSettings(BaseModel):
    """Runtime configuration of one session.

    Attributes:
        api_base_url: Scheme + host of the auth backend, no trailing slash.
        token_lifetime_seconds: Access token lifetime assumed by the client.
        refresh_buffer_seconds: Lead time before expiry for background refresh.
        request_timeout_seconds: Total timeout for each HTTP call.
        storage_file: JSON file used by the CLI for persisted local state.
            The session cookie jar is kept beside it (``.cookies`` suffix).
        origin: Namespace inside the storage file (one per backend origin).
        login_path: Where logout navigates and the guard sends anonymous users.
        home_path: Landing page for anonymous users hitting ``/``.
        default_authenticated_path: Landing page for authenticated users.
    """

    api_base_url: str = constants.AUTH_API_BASE_URL
    token_lifetime_seconds: int = Field(default=constants.TOKEN_LIFETIME_SECONDS, gt=0)
    refresh_buffer_seconds: int = Field(default=constants.TOKEN_REFRESH_BUFFER_SECONDS, ge=0)
    request_timeout_seconds: int = Field(default=constants.HTTP_REQUEST_TIMEOUT_SECONDS, gt=0)
    storage_file: str = constants.STORAGE_FILE
    origin: str = Field(default=constants.STORAGE_ORIGIN, min_length=1)
    login_path: str = constants.LOGIN_PATH
    home_path: str = constants.HOME_PATH
    default_authenticated_path: str = constants.DEFAULT_AUTHENTICATED_PATH

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v

    @field_validator("login_path", "home_path", "default_authenticated_path")
    @classmethod
    def validate_route_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("route paths must start with '/'")
        return v

    @model_validator(mode="after")
    def validate_buffer(self) -> SessionSettings:
        """The refresh lead time must leave part of the lifetime to wait."""
        if self.refresh_buffer_seconds >= self.token_lifetime_seconds:
            raise ValueError("refresh_buffer_seconds must be smaller than token_lifetime_seconds")
        return self

    @property
    def default_refresh_delay(self) -> float:
        """Seconds between a fresh token and its background refresh."""
        return float(self.token_lifetime_seconds - self.refresh_buffer_seconds)

    @property
    def cookie_file(self) -> str:
        """Cookie jar file kept beside ``storage_file``."""
        return str(Path(os.path.expanduser(self.storage_file)).with_suffix(".cookies"))

    def endpoint(self, path: str) -> str:
        return f"{self.api_base_url}{path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> SessionSettings:
        """Build settings from the env-driven constants plus explicit overrides."""
        return cls(**overrides)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionSettings:
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})
