"FlightCheck web app"
from __future__ import annotations

from pathlib import Path
from typing import Optional
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from flightcheck.identity_access.roles import RoleContext, RoleLookupError, RoleResolver, Unauthenticated
from flightcheck.identity_access.stores import SessionStore
from flightcheck.identity_access.supabase_auth import AuthSession
from . import config as _cfg
from .access import evaluate, is_public_path, policy_for
from .auth_utils import SESSION_COOKIE_NAME
from .responses import page, redirect
from .routes.auth import auth_router
from .routes.instructor import instructor_router
from .routes.qr import qr_router
from .routes.security import safe_next_or, same_origin_referer_path
from .routes.student import student_router
from .supabase_wiring import build_clients


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via FLIGHTCHECK_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("FLIGHTCHECK_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------

logger = logging.getLogger("flightcheck.web")
SESSION_STORE = SessionStore()

app = FastAPI(title="FlightCheck", description="Training checklist for students and instructors", version="0.1.0")
app.state.session_store = SESSION_STORE
app.state.clients = build_clients()

# --- Static Files ---------------------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# --- Access Guard -----------------------------------------------------------------


def _return_path(request: Request) -> Optional[str]:
    """Where to send the user after login: the page itself for GETs, the referring page otherwise."""
    if request.method in ("GET", "HEAD"):
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        return safe_next_or(path)
    return same_origin_referer_path(request)


async def _resolve_role_context(request: Request) -> Optional[RoleContext]:
    """Session cookie → RoleContext, or None for anonymous or unresolvable callers."""
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if not sid:
        return None
    store = request.app.state.session_store
    rec = store.get(sid)
    if rec is None:
        return None

    def _on_refresh(session: AuthSession) -> None:
        store.update_tokens(sid, access_token=session.access_token, refresh_token=session.refresh_token)

    resolver = RoleResolver(request.app.state.clients)
    try:
        return await asyncio.to_thread(resolver.resolve, rec, on_refresh=_on_refresh)
    except Unauthenticated:
        store.delete(sid)
        return None
    except RoleLookupError:
        return None
    except Exception as exc:
        logger.warning("Session resolution failed: %s", exc.__class__.__name__)
        return None


@app.middleware("http")
async def access_enforcement(request: Request, call_next):
    request.state.user = None
    request.state.access_token = None
    path = request.url.path
    if is_public_path(path):
        return await call_next(request)

    policy = policy_for(path)
    ctx = await _resolve_role_context(request)
    decision = evaluate(
        policy,
        ctx.role if ctx else None,
        authenticated=ctx is not None,
        next_path=_return_path(request) if ctx is None else None,
    )
    if not decision.allowed:
        return redirect(decision.redirect_to or "/login")

    if ctx is not None:
        # Minimal, read-only user context for handlers; the token stays server-side.
        request.state.user = ctx.as_state()
        request.state.access_token = ctx.access_token
    return await call_next(request)


# --- Security Headers Middleware ----------------------------------------------


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    csp = (
        "default-src 'self'; script-src 'self'; style-src 'self'; "
        "img-src 'self' data:; media-src 'self' blob:; "
        "frame-src https://www.youtube-nocookie.com; connect-src 'self'; "
        "form-action 'self'; base-uri 'self'; frame-ancestors 'none'"
    )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    # Camera stays available to our own scan page only.
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=(self)")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Routes -------------------------------------------------------------------------

app.include_router(auth_router)
app.include_router(student_router)
app.include_router(instructor_router)
app.include_router(qr_router)


@app.get("/", response_class=HTMLResponse)
async def landing(request: Request):
    content = """
        <div class="container narrow landing">
            <h1>FlightCheck</h1>
            <p>Training checklist for students and instructors.</p>
            <a href="/login" class="btn btn-primary">Log in</a>
        </div>"""
    return page(request, "Welcome", content)


@app.get("/health")
async def health_check():
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "ok"}, headers={"Cache-Control": "private, no-store"})
