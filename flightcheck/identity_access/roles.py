"""
Role resolver: session → (user, role).

Why:
    Every guarded page needs the caller's role. The role lives in the hosted
    `profiles` table, not in the provider token, so resolution is one token
    validation plus one profile lookup. The same row carries the display name
    shown in the navigation, so it is fetched in that one lookup.

Behavior:
    - No session → `Unauthenticated`.
    - Token rejected → one refresh attempt with the stored refresh token; the
      new tokens are handed to `on_refresh`. Still rejected →
      `Unauthenticated`.
    - Profile lookup error → `RoleLookupError` (propagates; callers redirect
      to login).
    - No profile row or an unknown role → "student".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging

from flightcheck.checklist.repo_supabase import ChecklistRepo, RemoteDataError
from .domain import DEFAULT_ROLE
from .stores import SessionRecord
from .supabase_auth import AuthSession, AuthUser, IdentityError, SupabaseAuthAdapter


logger = logging.getLogger("flightcheck.identity_access")


class Unauthenticated(Exception):
    """No usable session for the request."""


class RoleLookupError(Exception):
    """The profile lookup failed; the role is unknown."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class RoleContext:
    user: AuthUser
    role: str
    access_token: str
    display_name: str = ""

    def as_state(self) -> dict:
        """Minimal, read-only user context for request handlers and templates."""
        return {"id": self.user.id, "email": self.user.email, "role": self.role, "name": self.display_name}


class RoleResolver:
    """Resolve a session record into a `RoleContext`.

    `clients` must provide `anon()` (provider calls) and
    `for_access_token(token)` (user-scoped data client); see
    `flightcheck.web.supabase_wiring.SupabaseClients`.
    """

    def __init__(self, clients: Any) -> None:
        self._clients = clients

    def resolve(
        self,
        record: Optional[SessionRecord],
        *,
        on_refresh: Optional[Callable[[AuthSession], None]] = None,
    ) -> RoleContext:
        if record is None:
            raise Unauthenticated("no session")
        auth = SupabaseAuthAdapter(self._clients.anon())
        token = record.access_token
        try:
            user = auth.get_user(token)
        except IdentityError:
            try:
                refreshed = auth.refresh(record.refresh_token)
            except IdentityError as exc:
                raise Unauthenticated(exc.message) from exc
            if on_refresh is not None:
                on_refresh(refreshed)
            token = refreshed.access_token
            user = refreshed.user
        role, name = self.lookup_profile(user.id, token)
        return RoleContext(user=user, role=role, access_token=token, display_name=name)

    def lookup_profile(self, user_id: str, access_token: str) -> tuple[str, str]:
        """Return (role, display name) for `user_id`; defaults for a missing row."""
        repo = ChecklistRepo(self._clients.for_access_token(access_token))
        try:
            profile = repo.get_profile(user_id)
        except RemoteDataError as exc:
            logger.warning("Role lookup failed: %s", exc.table or "profiles")
            raise RoleLookupError(exc.message) from exc
        if profile is None:
            return DEFAULT_ROLE, ""
        return profile.role, profile.display_name or ""

    def fetch_role(self, user_id: str, access_token: str) -> str:
        return self.lookup_profile(user_id, access_token)[0]
