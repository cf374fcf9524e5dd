"""Persistence of user-facing application settings.

Settings live next to the credential entries in the same key/value medium,
serialized as one JSON document under ``app.settings`` with the camelCase
keys the browser front end writes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..constants import SETTINGS_KEY
from .repository import KeyValueStorage


class AppSettings(BaseModel):
    """User preferences with their defaults."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    notifications_enabled: bool = False
    notification_email: str = ""
    display_mode: Literal["system", "light", "dark"] = "system"
    text_size: Literal["small", "medium", "large"] = "medium"
    default_page: str = "projects"
    auto_open_last_project: bool = True

    @field_validator("notification_email")
    @classmethod
    def validate_notification_email(cls, v: str) -> str:
        v = v.strip()
        if v and (v.count("@") != 1 or v.startswith("@") or v.endswith("@")):
            raise ValueError("notification_email must be an email address")
        return v

    @field_validator("default_page")
    @classmethod
    def validate_default_page(cls, v: str) -> str:
        v = v.strip().lstrip("/")
        if not v:
            raise ValueError("default_page cannot be empty")
        return v

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def load_settings(storage: KeyValueStorage) -> AppSettings:
    """Return stored settings merged over the defaults.

    A missing entry yields the defaults. Corrupt JSON or values that fail
    validation are logged and also yield the defaults.
    """
    raw = storage.get(SETTINGS_KEY)
    if not raw:
        return AppSettings()
    try:
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("settings document must be an object")
        defaults = AppSettings().to_storage()
        return AppSettings.model_validate({**defaults, **parsed})
    except (ValueError, ValidationError) as e:
        logging.warning(f"⚠️ Failed to load settings, using defaults: {e}")
        return AppSettings()


def save_settings(storage: KeyValueStorage, settings: AppSettings) -> None:
    storage.set_many({SETTINGS_KEY: json.dumps(settings.to_storage())})
    logging.debug("💾 Settings saved")


def update_settings(storage: KeyValueStorage, **changes: Any) -> AppSettings:
    """Apply field changes (snake_case or camelCase names) and persist them."""
    current = load_settings(storage).to_storage()
    for name, value in changes.items():
        if name in AppSettings.model_fields:
            name = to_camel(name)
        elif name not in current:
            raise ValueError(f"unknown setting: {name}")
        current[name] = value
    updated = AppSettings.model_validate(current)
    save_settings(storage, updated)
    return updated
