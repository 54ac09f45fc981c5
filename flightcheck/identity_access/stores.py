"""
In-memory session store for the web app.

Why: Keep the Supabase access and refresh tokens server-side. The browser only
ever sees an opaque session id. For multi-process deployments, replace with a
Redis/DB-backed store exposing the same methods.

Security: Cookies carry only an opaque session id. Tokens never reach the client.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    email: str
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None
    ttl_seconds: int = 3600


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        user_id: str,
        email: str,
        access_token: str,
        refresh_token: str = "",
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            user_id=user_id,
            email=email,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=_now() + ttl_seconds,
            ttl_seconds=ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def update_tokens(self, session_id: str, *, access_token: str, refresh_token: str) -> Optional[SessionRecord]:
        """Store refreshed provider tokens; the session lifetime is unchanged."""
        rec = self.get(session_id)
        if not rec:
            return None
        rec.access_token = access_token
        if refresh_token:
            rec.refresh_token = refresh_token
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)
