"""Configuration loading from environment variables."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from src.core.errors import ConfigError
from src.ports.settings import DEFAULT_INTERVAL_MS, DEFAULT_MAX_DATA_POINTS, SettingsPort

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class Settings(BaseModel):
    """Runtime configuration for the live metrics feed.

    Attributes:
        supabase_url: Project base URL.
        supabase_anon_key: Public API key.
        access_token: Session token of the signed-in user, if any.
        interval_ms: Polling period in milliseconds (must be positive).
        max_data_points: Buffer capacity (must be positive).
        fetch_timeout_ms: Upper bound for one fetch; defaults to interval_ms.
        realtime_enabled: Subscribe to push notifications.
        health_check_enabled: Probe the auth health endpoint before starting.
    """

    supabase_url: str = Field(..., description="Project base URL.")
    supabase_anon_key: str = Field(..., min_length=1, description="Public (anon) API key.")
    access_token: str | None = Field(default=None, description="User session token.")
    interval_ms: int = Field(default=DEFAULT_INTERVAL_MS, gt=0, description="Polling period in ms.")
    max_data_points: int = Field(default=DEFAULT_MAX_DATA_POINTS, gt=0, description="Buffer capacity.")
    fetch_timeout_ms: int | None = Field(default=None, gt=0, description="Per-fetch timeout in ms.")
    realtime_enabled: bool = True
    health_check_enabled: bool = True

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate that the project URL is a valid HTTP(S) URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
        except ValidationError as e:
            raise ValueError(f"Invalid project URL: {e}") from e
        if url.scheme not in ("http", "https"):
            raise ValueError("Only http:// and https:// URLs allowed")
        return v.rstrip("/")

    @property
    def health_check_url(self) -> str:
        return f"{self.supabase_url}/auth/v1/health"

    def to_port(self) -> SettingsPort:
        """Return the subset of settings the core depends on."""
        return SettingsPort(
            interval_ms=self.interval_ms,
            max_data_points=self.max_data_points,
            fetch_timeout_ms=self.fetch_timeout_ms,
        )


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a positive integer (got: {raw})") from e
    if value <= 0:
        raise ConfigError(f"{name} must be a positive integer (got: {raw})")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() in _TRUE_VALUES:
        return True
    if raw.strip().lower() in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (got: {raw})")


def load_settings() -> Settings:
    """Load and validate settings from the environment (and .env).

    Required environment variables:
    - SUPABASE_URL: Project base URL.
    - SUPABASE_ANON_KEY: Public API key.

    Optional:
    - SUPABASE_ACCESS_TOKEN: Session token; without it the feed stays idle.
    - REFRESH_INTERVAL_MS: Polling period (default 5000).
    - MAX_DATA_POINTS: Buffer capacity (default 50).
    - FETCH_TIMEOUT_MS: Per-fetch timeout (default: the polling period).
    - REALTIME_ENABLED, HEALTH_CHECK_ENABLED: true/false (default true).

    Returns:
        Validated Settings object.

    Raises:
        ConfigError: If a required variable is missing or any value is invalid.
    """
    try:
        supabase_url = os.environ["SUPABASE_URL"]
        anon_key = os.environ["SUPABASE_ANON_KEY"]
    except KeyError as e:
        raise ConfigError(f"Missing required environment variable: {e.args[0]}") from e

    try:
        settings = Settings(
            supabase_url=supabase_url,
            supabase_anon_key=anon_key,
            access_token=os.getenv("SUPABASE_ACCESS_TOKEN") or None,
            interval_ms=_int_env("REFRESH_INTERVAL_MS", DEFAULT_INTERVAL_MS),
            max_data_points=_int_env("MAX_DATA_POINTS", DEFAULT_MAX_DATA_POINTS),
            fetch_timeout_ms=_int_env("FETCH_TIMEOUT_MS", None),
            realtime_enabled=_bool_env("REALTIME_ENABLED", True),
            health_check_enabled=_bool_env("HEALTH_CHECK_ENABLED", True),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.info(
        f"Live metrics configured: url={settings.supabase_url}, "
        f"interval={settings.interval_ms}ms, "
        f"max_points={settings.max_data_points}, "
        f"realtime={'on' if settings.realtime_enabled else 'off'}, "
        f"signed_in={'yes' if settings.access_token else 'no'}"
    )

    return settings
