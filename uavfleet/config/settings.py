"""Application settings for reaching the fleet-management API.

This module centralises configuration for the REST and WebSocket endpoints of
the UAV control-center backend. Environment variables are loaded from a
``.env`` file using ``python-dotenv`` and exposed through a Pydantic settings
object.
"""

from __future__ import annotations

import os
import re
from typing import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Load environment variables from a .env file if present
load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_WS_PATH = "/ws"
REQUEST_TIMEOUT = 10  # seconds
DASHBOARD_CACHE_SECONDS = 5 * 60
MAX_ALERTS = 50
SESSION_DB = "uavfleet_session.db"

_TRUE_SET = {"1", "true", "yes", "on"}
_FEATURE_DEFAULTS: Mapping[str, bool] = {
    "realtime": True,
    "analytics": True,
    "weather": False,
}


class Settings(BaseModel):
    """Immutable settings object used across the application."""

    api_url: str
    ws_url: str
    api_token: str | None = None
    timeout: float = REQUEST_TIMEOUT
    max_retries: int = 3
    dashboard_cache_seconds: float = DASHBOARD_CACHE_SECONDS
    max_alerts: int = MAX_ALERTS
    ws_reconnect_attempts: int = 5
    ws_reconnect_delay: float = 1.0
    ws_heartbeat_seconds: float = 30.0
    session_db: str = SESSION_DB
    features: Mapping[str, bool] = dict(_FEATURE_DEFAULTS)

    model_config = ConfigDict(frozen=True)

    def feature_enabled(self, name: str) -> bool:
        return bool(self.features.get(name.strip().lower(), False))


def to_websocket_url(base_url: str, endpoint: str = "") -> str:
    """Map an ``http(s)`` base URL onto ``ws(s)`` and append ``endpoint``."""

    base = base_url.rstrip("/")
    scheme = "wss" if base.startswith("https") else "ws"
    host = re.sub(r"^(https?|wss?)://", "", base)
    if not endpoint:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}/{endpoint.lstrip('/')}"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_SET


def _env_number(name: str, default: float, cast: type = float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return cast(default)
    try:
        return cast(raw.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None


def _build_settings() -> Settings:
    """Construct the ``Settings`` instance based on environment variables."""

    api_url = (os.getenv("UAV_API_URL") or DEFAULT_API_URL).strip().rstrip("/")
    ws_url = (os.getenv("UAV_WS_URL") or "").strip() or to_websocket_url(api_url, DEFAULT_WS_PATH)
    token = (os.getenv("UAV_API_TOKEN") or "").strip() or None

    timeout = _env_number("UAV_REQUEST_TIMEOUT", REQUEST_TIMEOUT)
    max_retries = int(_env_number("UAV_MAX_RETRIES", 3, int))
    cache_seconds = _env_number("UAV_DASHBOARD_CACHE_SECONDS", DASHBOARD_CACHE_SECONDS)
    max_alerts = int(_env_number("UAV_MAX_ALERTS", MAX_ALERTS, int))

    if timeout <= 0:
        raise RuntimeError("UAV_REQUEST_TIMEOUT must be positive")
    if max_retries < 0:
        raise RuntimeError("UAV_MAX_RETRIES must not be negative")
    if max_alerts < 1:
        raise RuntimeError("UAV_MAX_ALERTS must be at least 1")

    features = {
        name: _env_flag(f"UAV_FEATURE_{name.upper()}", default)
        for name, default in _FEATURE_DEFAULTS.items()
    }

    return Settings(
        api_url=api_url,
        ws_url=ws_url,
        api_token=token,
        timeout=timeout,
        max_retries=max_retries,
        dashboard_cache_seconds=max(0.0, cache_seconds),
        max_alerts=max_alerts,
        ws_reconnect_attempts=int(_env_number("UAV_WS_RECONNECT_ATTEMPTS", 5, int)),
        ws_reconnect_delay=max(0.0, _env_number("UAV_WS_RECONNECT_DELAY", 1.0)),
        ws_heartbeat_seconds=_env_number("UAV_WS_HEARTBEAT_SECONDS", 30.0),
        session_db=os.getenv("UAV_SESSION_DB") or SESSION_DB,
        features=features,
    )


# Public settings instance
settings = _build_settings()

# Convenient exports
API_URL = settings.api_url
WS_URL = settings.ws_url
