"""
Identity/session provider adapter (Supabase Auth).

Why:
    Route handlers and the role resolver should not depend on the shape of the
    `supabase` client responses. This adapter wraps the `client.auth` namespace
    and returns small DTOs. Library exceptions are translated into
    `IdentityError` so callers can map them to a login redirect or an inline
    message.

Security:
    - Access/refresh tokens are returned to the caller for server-side storage
      only; never log them.
    - Logging records exception class names, not messages that might echo
      credentials.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging


logger = logging.getLogger("flightcheck.identity_access")


class IdentityError(Exception):
    """Raised when the identity provider rejects or fails a request."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SessionMissingError(IdentityError):
    """No valid provider session exists (a normal state, not a fault)."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser
    access_token: str
    refresh_token: str = ""
    expires_in: Optional[int] = None


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from an object attribute or a mapping key."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _to_user(raw: Any) -> Optional[AuthUser]:
    uid = _get(raw, "id")
    if not uid:
        return None
    metadata = _get(raw, "user_metadata") or {}
    return AuthUser(id=str(uid), email=str(_get(raw, "email") or ""), metadata=dict(metadata))


def _to_session(response: Any) -> AuthSession:
    session = _get(response, "session")
    user = _to_user(_get(response, "user") or _get(session, "user"))
    access = _get(session, "access_token")
    if not session or not access or user is None:
        raise SessionMissingError("no session returned")
    return AuthSession(
        user=user,
        access_token=str(access),
        refresh_token=str(_get(session, "refresh_token") or ""),
        expires_in=_get(session, "expires_in"),
    )


def _message(exc: Exception) -> str:
    return str(getattr(exc, "message", None) or exc) or exc.__class__.__name__


class SupabaseAuthAdapter:
    """Thin wrapper around `client.auth` of a supabase client (duck-typed)."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            resp = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            logger.warning("Sign-in rejected: %s", exc.__class__.__name__)
            raise IdentityError(_message(exc)) from exc
        return _to_session(resp)

    def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Optional[str]:
        """Create an account; returns the new user id when the provider reports one.

        Behavior:
            The metadata (display name, invite code) travels as user metadata so
            the backend's signup hook can validate the invite code and seed the
            profile row. Email confirmation is handled by the provider.
        """
        try:
            resp = self._client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": dict(metadata)}}
            )
        except Exception as exc:
            logger.warning("Sign-up rejected: %s", exc.__class__.__name__)
            raise IdentityError(_message(exc)) from exc
        user = _to_user(_get(resp, "user"))
        return user.id if user else None

    def get_user(self, access_token: str) -> AuthUser:
        if not access_token:
            raise SessionMissingError("no access token")
        try:
            resp = self._client.auth.get_user(access_token)
        except Exception as exc:
            logger.info("Token validation failed: %s", exc.__class__.__name__)
            raise SessionMissingError(_message(exc)) from exc
        user = _to_user(_get(resp, "user"))
        if user is None:
            raise SessionMissingError("no user for token")
        return user

    def refresh(self, refresh_token: str) -> AuthSession:
        if not refresh_token:
            raise SessionMissingError("no refresh token")
        try:
            resp = self._client.auth.refresh_session(refresh_token)
        except Exception as exc:
            logger.info("Session refresh failed: %s", exc.__class__.__name__)
            raise SessionMissingError(_message(exc)) from exc
        return _to_session(resp)

    def sign_out(self, access_token: str) -> None:
        """Revoke the provider session; best effort, never raises."""
        if not access_token:
            return
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as exc:
            logger.warning("Provider sign-out failed: %s", exc.__class__.__name__)
