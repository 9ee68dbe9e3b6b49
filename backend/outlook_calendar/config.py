"""Runtime configuration.

Everything is sourced from environment variables. ``get_settings()`` caches the
parsed result per process; tests call ``get_settings.cache_clear()`` after
patching the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

_TRUTHY = {"1", "true", "TRUE", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    azure_client_id: str = ""
    azure_client_secret: str = ""
    azure_tenant_id: str = "common"
    azure_scopes: List[str] = field(default_factory=lambda: ["email", "User.Read", "Calendars.Read"])
    azure_redirect_uri: str = ""
    session_secret: str = ""
    session_encryption_key: str = ""
    session_cookie_name: str = "calendar_session"
    session_cookie_secure: bool = False
    session_max_age_seconds: int = 3600
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_timeout_seconds: float = 10.0
    calendar_time_zone: str = "Asia/Tokyo"
    oauth_state_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    post_login_redirect: str = "/"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.azure_tenant_id}"

    @property
    def azure_configured(self) -> bool:
        return bool(self.azure_client_id and self.azure_client_secret)


def _split(raw: str, sep: str | None = None) -> List[str]:
    return [part.strip() for part in raw.split(sep) if part.strip()]


def load_settings() -> Settings:
    """Build ``Settings`` from the process environment."""
    env = os.environ
    defaults = Settings()
    scopes_raw = env.get("AZURE_AD_SCOPES", "").strip()
    origins_raw = env.get("CORS_ALLOW_ORIGINS", "").strip()
    return Settings(
        azure_client_id=env.get("AZURE_AD_CLIENT_ID", "").strip(),
        azure_client_secret=env.get("AZURE_AD_CLIENT_SECRET", "").strip(),
        azure_tenant_id=env.get("AZURE_AD_TENANT_ID", "").strip() or defaults.azure_tenant_id,
        azure_scopes=_split(scopes_raw) if scopes_raw else defaults.azure_scopes,
        azure_redirect_uri=env.get("AZURE_AD_REDIRECT_URI", "").strip(),
        session_secret=env.get("SESSION_SECRET", ""),
        session_encryption_key=env.get("SESSION_ENCRYPTION_KEY", ""),
        session_cookie_name=env.get("SESSION_COOKIE_NAME", defaults.session_cookie_name),
        session_cookie_secure=env.get("SESSION_COOKIE_SECURE", "false") in _TRUTHY,
        session_max_age_seconds=int(env.get("SESSION_MAX_AGE_SECONDS", defaults.session_max_age_seconds)),
        graph_base_url=env.get("GRAPH_BASE_URL", defaults.graph_base_url).rstrip("/"),
        graph_timeout_seconds=float(env.get("GRAPH_TIMEOUT_SECONDS", defaults.graph_timeout_seconds)),
        calendar_time_zone=env.get("CALENDAR_TIME_ZONE", defaults.calendar_time_zone),
        oauth_state_backend=env.get("OAUTH_STATE_BACKEND", defaults.oauth_state_backend).lower(),
        redis_url=env.get("REDIS_URL", defaults.redis_url),
        cors_allow_origins=_split(origins_raw, ",") if origins_raw else defaults.cors_allow_origins,
        post_login_redirect=env.get("POST_LOGIN_REDIRECT", defaults.post_login_redirect),
        log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
        api_host=env.get("API_HOST", defaults.api_host),
        api_port=int(env.get("API_PORT", defaults.api_port)),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def load_dotenv_if_requested() -> None:
    """Load ``.env`` when APP_LOAD_DOTENV is set. Existing variables win."""
    if os.getenv("APP_LOAD_DOTENV") in _TRUTHY:
        from dotenv import load_dotenv
        load_dotenv(override=False)
