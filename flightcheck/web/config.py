"""
Configuration and startup security checks for FlightCheck.

Why: Prevent accidental insecure deployments. This module provides a settings
reader and a single guard that enforces minimal production safety constraints
without burdening local development.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


_PLACEHOLDERS = ("DUMMY", "CHANGE_ME", "YOUR_")


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    environment: str
    supabase_url: str
    supabase_anon_key: str
    app_base_url: str
    session_ttl_seconds: int
    trust_proxy: bool

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def load_settings() -> Settings:
    """Read settings from the environment (call time, not import time)."""
    try:
        ttl = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
    except ValueError:
        ttl = 3600
    return Settings(
        environment=(os.getenv("FLIGHTCHECK_ENV", "dev") or "dev").lower(),
        supabase_url=(os.getenv("SUPABASE_URL") or "").strip(),
        supabase_anon_key=(os.getenv("SUPABASE_ANON_KEY") or "").strip(),
        app_base_url=(os.getenv("APP_BASE_URL") or "").strip().rstrip("/"),
        session_ttl_seconds=max(60, ttl),
        trust_proxy=_flag("FLIGHTCHECK_TRUST_PROXY"),
    )


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - SUPABASE_URL and SUPABASE_ANON_KEY must be set and not placeholders.
    - SUPABASE_URL and APP_BASE_URL must use https.
    - The anon key must not be the service role key (the web app relies on
      row-level security and must never bypass it).
    """
    env = os.getenv("FLIGHTCHECK_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    url = (os.getenv("SUPABASE_URL") or "").strip()
    anon = (os.getenv("SUPABASE_ANON_KEY") or "").strip()
    if not url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")
    if not anon or anon.upper().startswith(_PLACEHOLDERS):
        raise SystemExit(
            "Refusing to start: SUPABASE_ANON_KEY is unset or a placeholder in production."
        )

    def _must_be_https(url_value: str, var_name: str) -> None:
        if not url_value:
            return
        if url_value.strip().lower().startswith("http://"):
            raise SystemExit(
                f"Refusing to start: {var_name} must use https in production (got http)."
            )

    _must_be_https(url, "SUPABASE_URL")
    _must_be_https(os.getenv("APP_BASE_URL", ""), "APP_BASE_URL")

    service = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if service and service == anon:
        raise SystemExit(
            "Refusing to start: SUPABASE_ANON_KEY equals the service role key. "
            "The web app must use the anon key so row-level security applies."
        )
