"""
Supabase client wiring for the web app.

Why:
    The web layer needs two kinds of clients: an anonymous one for auth calls
    (sign in, sign up, token validation) and a user-scoped one whose PostgREST
    requests carry the signed-in user's access token so row-level security
    applies. Building both in one place keeps the key handling out of routes.

Security:
    Uses SUPABASE_URL and SUPABASE_ANON_KEY only. The service role key is never
    read here. Tokens are passed in by the caller and never logged.
"""
from __future__ import annotations

from typing import Any, Optional
import logging

from .config import Settings, load_settings


logger = logging.getLogger("flightcheck.web")


class SupabaseNotConfigured(RuntimeError):
    pass


class SupabaseClients:
    """Factory for anon and user-scoped supabase clients."""

    def __init__(self, url: str, anon_key: str) -> None:
        self._url = url
        self._anon_key = anon_key

    def _create(self) -> Any:
        # Lazy import keeps app import cheap and lets tests run without network.
        from supabase import create_client, ClientOptions  # type: ignore

        options = ClientOptions(auto_refresh_token=False, persist_session=False)
        return create_client(self._url, self._anon_key, options=options)

    def anon(self) -> Any:
        return self._create()

    def for_access_token(self, access_token: str) -> Any:
        client = self._create()
        client.postgrest.auth(access_token)
        return client


class _UnconfiguredClients:
    """Placeholder used when Supabase env vars are missing (local dev)."""

    def anon(self) -> Any:
        raise SupabaseNotConfigured("SUPABASE_URL/SUPABASE_ANON_KEY not configured")

    def for_access_token(self, access_token: str) -> Any:
        raise SupabaseNotConfigured("SUPABASE_URL/SUPABASE_ANON_KEY not configured")


def build_clients(settings: Optional[Settings] = None) -> Any:
    """Return a client factory; logs and returns a placeholder when unconfigured."""
    settings = settings or load_settings()
    if not settings.supabase_configured:
        logger.warning("Supabase is not configured; sign-in and data pages will fail until it is.")
        return _UnconfiguredClients()
    return SupabaseClients(settings.supabase_url, settings.supabase_anon_key)
