"""
config/config.py

Purpose
-------
Centralized settings for the hosting client.
- Resolves API origins, credentials, timeouts and operation polling policy
  from environment variables (first non-empty alias wins).
- Integrations accept explicit overrides for every value, so tests never
  depend on the process environment.

Examples
--------
# Bash:
export HOSTING_API_ORIGIN='http://localhost:8080'
export OPERATION_POLL_MAX_ATTEMPTS=120
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from utils.retry import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_MAX_INTERVAL_SECONDS,
)

DEFAULT_HOSTING_API_ORIGIN = "https://firebasehosting.googleapis.com"
DEFAULT_IDENTITY_API_ORIGIN = "https://identitytoolkit.googleapis.com"
DEFAULT_REQUEST_TIMEOUT = 30

_NUMERIC_DEFAULTS = {
    "hosting_request_timeout": DEFAULT_REQUEST_TIMEOUT,
    "operation_poll_interval_seconds": DEFAULT_POLL_INTERVAL_SECONDS,
    "operation_poll_max_interval_seconds": DEFAULT_POLL_MAX_INTERVAL_SECONDS,
    "operation_poll_max_attempts": DEFAULT_POLL_MAX_ATTEMPTS,
}


# -----------------------------
# Helper functions
# -----------------------------
def _coalesce_env(*names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty environment variable from *names*."""
    for name in names:
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return val
    return default


def _parse_int(value: Optional[str], *, default: int) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _parse_float(value: Optional[str], *, default: float) -> float:
    if value is None or str(value).strip() == "":
        return default
    try:
        return float(str(value).strip())
    except ValueError:
        return default


# -----------------------------
# Main Settings
# -----------------------------
class Settings(BaseSettings):
    # --- API origins ---
    hosting_api_origin: str = Field(
        default_factory=lambda: _coalesce_env("HOSTING_API_ORIGIN")
        or DEFAULT_HOSTING_API_ORIGIN
    )
    identity_api_origin: str = Field(
        default_factory=lambda: _coalesce_env("IDENTITY_API_ORIGIN")
        or DEFAULT_IDENTITY_API_ORIGIN
    )

    # --- Credentials ---
    hosting_access_token: Optional[str] = Field(
        default_factory=lambda: _coalesce_env(
            "HOSTING_ACCESS_TOKEN", "GOOGLE_ACCESS_TOKEN"
        )
    )

    # --- Transport ---
    hosting_request_timeout: int = Field(
        default_factory=lambda: _parse_int(
            _coalesce_env("HOSTING_REQUEST_TIMEOUT"), default=DEFAULT_REQUEST_TIMEOUT
        )
    )

    # --- Long-running operation polling ---
    operation_poll_interval_seconds: float = Field(
        default_factory=lambda: _parse_float(
            _coalesce_env("OPERATION_POLL_INTERVAL_SECONDS"),
            default=DEFAULT_POLL_INTERVAL_SECONDS,
        )
    )
    operation_poll_max_interval_seconds: float = Field(
        default_factory=lambda: _parse_float(
            _coalesce_env("OPERATION_POLL_MAX_INTERVAL_SECONDS"),
            default=DEFAULT_POLL_MAX_INTERVAL_SECONDS,
        )
    )
    operation_poll_max_attempts: int = Field(
        default_factory=lambda: _parse_int(
            _coalesce_env("OPERATION_POLL_MAX_ATTEMPTS"), default=DEFAULT_POLL_MAX_ATTEMPTS
        )
    )

    class Config:
        case_sensitive = False

    @field_validator("hosting_api_origin", "identity_api_origin", mode="after")
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Field-named env vars reach the model before the default factories run,
    # so malformed values fall back to the defaults here as well.
    @field_validator(*_NUMERIC_DEFAULTS, mode="before")
    def _lenient_numbers(cls, v, info):
        if not isinstance(v, str):
            return v
        default = _NUMERIC_DEFAULTS[info.field_name]
        if isinstance(default, int):
            return _parse_int(v, default=default)
        return _parse_float(v, default=default)


# Singleton settings instance
settings = Settings()
