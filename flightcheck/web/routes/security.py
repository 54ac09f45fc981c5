"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the same-origin check for state-changing forms, the return-path
validator used by the login flow and the access guard, and the request
origin helper used when no APP_BASE_URL is configured.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse
import re

from fastapi import Request

from ..config import load_settings


MAX_INAPP_REDIRECT_LEN = 256
# Printable ASCII only; rejects control characters and backslashes (some
# browsers read "/\host" as a protocol-relative URL).
_UNSAFE_CHARS = re.compile(r"[\x00-\x1f\x7f\\]")


def is_safe_next_path(value: Optional[str]) -> bool:
    """Return True for same-origin absolute paths such as "/instructor/student/abc".

    Rejected: empty values, relative paths, protocol-relative "//host",
    absolute URLs, backslashes, control characters, overlong values.
    Query strings are allowed so a return path can carry search state.
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    if not value.startswith("/") or value.startswith("//"):
        return False
    if _UNSAFE_CHARS.search(value):
        return False
    return True


def safe_next_or(value: Optional[str], default: Optional[str] = None) -> Optional[str]:
    return value if is_safe_next_path(value) else default


def _trust_proxy() -> bool:
    return load_settings().trust_proxy


def request_app_base(request: Request) -> str:
    """Derive the browser-facing app base from the incoming request.

    Honors trusted proxy headers when FLIGHTCHECK_TRUST_PROXY=true; otherwise
    uses ASGI's scheme/host. Returns scheme://host[:port].
    """
    scheme = (request.url.scheme or "http").lower()
    if request.url.hostname:
        host = f"{request.url.hostname}:{request.url.port}" if request.url.port else request.url.hostname
    else:
        host = request.headers.get("host") or ""
    if _trust_proxy():
        xf_proto = (request.headers.get("x-forwarded-proto") or scheme).split(",")[0].strip()
        xf_host = (request.headers.get("x-forwarded-host") or host).split(",")[0].strip()
        scheme = (xf_proto or scheme).lower()
        host = xf_host or host
    return f"{scheme}://{host}"


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    port = p.port if p.port is not None else (443 if scheme == "https" else 80)
    return scheme, p.hostname.lower(), int(port)


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    Proxy awareness: Only trust X-Forwarded-* when FLIGHTCHECK_TRUST_PROXY=true.
    """
    try:
        server = _parse_origin(request_app_base(request))
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False


def same_origin_referer_path(request: Request) -> Optional[str]:
    """Path (+query) of a same-origin Referer, used as a return target for POSTs."""
    referer_val = request.headers.get("referer")
    if not referer_val or not _is_same_origin(request):
        return None
    try:
        p = urlparse(referer_val)
    except ValueError:
        return None
    path = p.path or "/"
    if p.query:
        path = f"{path}?{p.query}"
    return safe_next_or(path)
