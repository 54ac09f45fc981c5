"""
Shared authentication utilities.

Why:
    Avoid duplicating environment-dependent cookie policy logic across modules
    (main app middleware and the auth router).

Design:
    The helpers are framework-agnostic and pure: they accept an environment
    string and return the corresponding cookie flags.
"""

from __future__ import annotations


SESSION_COOKIE_NAME = "flightcheck_session"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # QR links opened from a phone camera are top-level
                         # cross-site navigations and must still carry the cookie
    """
    return {"secure": True, "samesite": "lax"}


def set_session_cookie(response, value: str, *, environment: str, max_age: int | None = None) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=value,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age,
    )


def clear_session_cookie(response, *, environment: str) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value="",
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        expires=0,
        max_age=0,
    )
