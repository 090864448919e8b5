from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "WhatsHub"
ENV_PREFIX = "WHATSHUB_"
ENV_FILE_NAME = "settings.env"

URL_SETTING = f"{ENV_PREFIX}SUPABASE_URL"
KEY_SETTING = f"{ENV_PREFIX}SUPABASE_KEY"
REQUIRED_SETTINGS: tuple[str, ...] = (URL_SETTING, KEY_SETTING)

DEFAULT_TABLE = "groups"
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_ADMIN_SECRET = "admin"


def _config_dir() -> Path:
    path = Path(user_config_dir(APP_NAME, roaming=True))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _cache_dir() -> Path:
    path = Path(user_cache_dir(APP_NAME))
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _config_dir()


def cache_dir() -> Path:
    return _cache_dir()


def log_dir() -> Path:
    path = cache_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _env_file_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    return _config_dir() / ENV_FILE_NAME


@dataclass(slots=True)
class Settings:
    """Connection details for the remote group table plus client knobs.

    ``supabase_url`` and ``supabase_key`` are mandatory; without them the
    gateway refuses to start and reports a configuration error naming both
    variables instead of attempting a request.
    """

    supabase_url: str | None = None
    supabase_key: str | None = None
    table: str = DEFAULT_TABLE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    admin_secret: str = DEFAULT_ADMIN_SECRET

    @property
    def is_configured(self) -> bool:
        """True when both the endpoint URL and access key are set."""
        return not self.missing_settings()

    def missing_settings(self) -> list[str]:
        missing: list[str] = []
        if not self.supabase_url:
            missing.append(URL_SETTING)
        if not self.supabase_key:
            missing.append(KEY_SETTING)
        return missing

    def rest_endpoint(self) -> str:
        """Return the PostgREST base URL for the configured project."""
        base = (self.supabase_url or "").rstrip("/")
        return f"{base}/rest/v1"


class SettingsManager:
    """Load and persist application settings with environment overrides."""

    def __init__(self, env_file: Path | None = None) -> None:
        self._env_file = _env_file_path(env_file)

    @property
    def env_file(self) -> Path:
        return self._env_file

    def load(self) -> Settings:
        """Load settings from environment, falling back to persisted file."""
        load_dotenv(self._env_file, override=False)

        settings = Settings(
            supabase_url=self._get_env("SUPABASE_URL"),
            supabase_key=self._get_env("SUPABASE_KEY"),
        )

        table = self._get_env("TABLE")
        if table:
            settings.table = table

        timeout = self._get_timeout_from_env()
        if timeout is not None:
            settings.request_timeout = timeout

        secret = self._get_env("ADMIN_SECRET")
        if secret:
            settings.admin_secret = secret

        return settings

    def save(self, settings: Settings) -> None:
        """Persist core configuration fields to the managed env file."""
        self._env_file.parent.mkdir(parents=True, exist_ok=True)
        content = [
            f"{ENV_PREFIX}SUPABASE_URL={settings.supabase_url or ''}",
            f"{ENV_PREFIX}SUPABASE_KEY={settings.supabase_key or ''}",
            f"{ENV_PREFIX}TABLE={settings.table}",
            f"{ENV_PREFIX}REQUEST_TIMEOUT={settings.request_timeout}",
        ]
        self._env_file.write_text("\n".join(content) + "\n", encoding="utf-8")

    def _get_env(self, name: str) -> str | None:
        return os.getenv(f"{ENV_PREFIX}{name}") or None

    def _get_timeout_from_env(self) -> float | None:
        raw = self._get_env("REQUEST_TIMEOUT")
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError:
            return None
        return value if value > 0 else None


__all__ = [
    "DEFAULT_ADMIN_SECRET",
    "KEY_SETTING",
    "REQUIRED_SETTINGS",
    "Settings",
    "SettingsManager",
    "URL_SETTING",
    "cache_dir",
    "config_dir",
    "log_dir",
]
