"""Configuration helpers for the WhatsHub directory client."""

from .settings import (
    DEFAULT_ADMIN_SECRET,
    KEY_SETTING,
    REQUIRED_SETTINGS,
    URL_SETTING,
    Settings,
    SettingsManager,
)

__all__ = [
    "DEFAULT_ADMIN_SECRET",
    "KEY_SETTING",
    "REQUIRED_SETTINGS",
    "URL_SETTING",
    "Settings",
    "SettingsManager",
]
