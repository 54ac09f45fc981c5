"""
Page access policy.

Why:
    Each page declares which roles may see it; a single guard (the
    `access_enforcement` middleware in `main.py`) evaluates the table once per
    request. Pages therefore never repeat their own "is this an instructor?"
    checks and the redirect rules stay in one place.

Rules:
    - Public pages skip session resolution entirely.
    - Guarded page, no usable session (or the role could not be resolved) →
      302 to /login carrying a safe `next` return path.
    - Guarded page, wrong role → 302 to the caller's own home page, silently.
    - Open pages (`roles=None`) resolve the session when present but admit
      anonymous callers; handlers decide what to do with them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple
from urllib.parse import urlencode

from flightcheck.identity_access.domain import STAFF_ROLES, home_path_for


LOGIN_PATH = "/login"

PUBLIC_PATHS = frozenset({"/", "/login", "/signup", "/health", "/favicon.ico"})
PUBLIC_PREFIXES = ("/static/",)


@dataclass(frozen=True)
class PagePolicy:
    prefix: str
    roles: Optional[FrozenSet[str]]

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix.rstrip("/") + "/")

    def admits(self, role: Optional[str]) -> bool:
        return self.roles is None or (role or "") in self.roles


POLICIES: Tuple[PagePolicy, ...] = (
    PagePolicy("/dashboard", frozenset({"student"})),
    PagePolicy("/instructor", STAFF_ROLES),
    PagePolicy("/admin", frozenset({"admin"})),
    PagePolicy("/qr", None),
    PagePolicy("/logout", None),
)

OPEN_POLICY = PagePolicy("/", None)


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def policy_for(path: str) -> PagePolicy:
    """Longest matching prefix wins; unlisted paths are open."""
    best: Optional[PagePolicy] = None
    for policy in POLICIES:
        if policy.matches(path) and (best is None or len(policy.prefix) > len(best.prefix)):
            best = policy
    return best or OPEN_POLICY


def login_url(next_path: Optional[str] = None) -> str:
    if not next_path:
        return LOGIN_PATH
    return f"{LOGIN_PATH}?{urlencode({'next': next_path})}"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None


def evaluate(policy: PagePolicy, role: Optional[str], *, authenticated: bool, next_path: Optional[str]) -> AccessDecision:
    """Decide one request against its policy.

    `role` is None when the caller is anonymous or the role could not be
    resolved; `next_path` must already be validated by the caller.
    """
    if policy.roles is None:
        return AccessDecision(allowed=True)
    if not authenticated or role is None:
        return AccessDecision(allowed=False, redirect_to=login_url(next_path))
    if not policy.admits(role):
        return AccessDecision(allowed=False, redirect_to=home_path_for(role))
    return AccessDecision(allowed=True)
