"""Configuration package exports.

Unified access point for session settings, the key/value storage media
and the persisted user preferences.
"""

from .model import SessionSettings
from .repository import JsonFileStorage, KeyValueStorage, MemoryStorage
from .settings_storage import AppSettings, load_settings, save_settings, update_settings

__all__ = [
    "AppSettings",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "SessionSettings",
    "load_settings",
    "save_settings",
    "update_settings",
]
