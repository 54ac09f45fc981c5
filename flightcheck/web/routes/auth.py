"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep sign-in, sign-up and logout in a dedicated router. The shared session
    store and client factory live on `request.app.state` so tests can swap
    them without touching this module.

Notes:
    - Passwords go straight to Supabase Auth; nothing credential-related is
      stored or logged here.
    - The session cookie carries only an opaque id; provider tokens stay in
      the server-side session store.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode
import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from flightcheck.checklist.repo_supabase import ChecklistRepo, RemoteDataError
from flightcheck.identity_access.domain import is_staff
from flightcheck.identity_access.roles import RoleLookupError, RoleResolver
from flightcheck.identity_access.supabase_auth import IdentityError, SupabaseAuthAdapter
from ..auth_utils import SESSION_COOKIE_NAME, clear_session_cookie, set_session_cookie
from ..components import Component
from ..config import load_settings
from ..responses import PRIVATE_NO_STORE, alert, page, redirect
from .security import safe_next_or


auth_router = APIRouter(tags=["Auth"])
logger = logging.getLogger("flightcheck.web.auth")

REGISTERED_NOTICE = "Registration complete. Confirm your email address, then log in."


def post_login_destination(role: Optional[str], next_path: Optional[str]) -> str:
    """Staff return to a safe `next` (or /instructor); students always land on /dashboard."""
    if is_staff(role):
        return safe_next_or(next_path, "/instructor") or "/instructor"
    return "/dashboard"


def _hidden_next(next_path: Optional[str]) -> str:
    if not next_path:
        return ""
    return f'<input type="hidden" name="next" value="{Component.escape(next_path)}">'


def _with_next(path: str, next_path: Optional[str], **extra: str) -> str:
    params = dict(extra)
    if next_path:
        params["next"] = next_path
    return f"{path}?{urlencode(params)}" if params else path


def _login_form(*, next_path: Optional[str], email: str = "", error: str = "", notice: str = "") -> str:
    messages = (alert(notice, kind="success") if notice else "") + (alert(error) if error else "")
    signup_href = _with_next("/signup", next_path)
    return_hint = (
        f'<p class="text-muted">After login you will return to: <code>{Component.escape(next_path)}</code></p>'
        if next_path
        else ""
    )
    return f"""
        <div class="container narrow">
            <h1>Log in</h1>
            {messages}
            {return_hint}
            <form method="post" action="/login" class="card form-stack">
                {_hidden_next(next_path)}
                <label for="email">Email</label>
                <input id="email" name="email" type="email" autocomplete="email" required value="{Component.escape(email)}">
                <label for="password">Password</label>
                <input id="password" name="password" type="password" autocomplete="current-password" required>
                <button type="submit" class="btn btn-primary">Log in</button>
            </form>
            <p class="text-muted">No account yet? <a href="{Component.escape(signup_href)}">Sign up</a></p>
        </div>"""


def _signup_form(*, next_path: Optional[str], values: Optional[dict] = None, error: str = "") -> str:
    v = values or {}
    login_href = _with_next("/login", next_path)
    return f"""
        <div class="container narrow">
            <h1>Sign up</h1>
            {alert(error) if error else ""}
            <form method="post" action="/signup" class="card form-stack">
                {_hidden_next(next_path)}
                <label for="name_romaji">Display name (romaji)</label>
                <input id="name_romaji" name="name_romaji" type="text" autocomplete="name" value="{Component.escape(v.get("name_romaji", ""))}">
                <label for="email">Email</label>
                <input id="email" name="email" type="email" autocomplete="email" required value="{Component.escape(v.get("email", ""))}">
                <label for="password">Password</label>
                <input id="password" name="password" type="password" autocomplete="new-password" required>
                <label for="invite_code">Invite code</label>
                <input id="invite_code" name="invite_code" type="text" autocomplete="off" value="{Component.escape(v.get("invite_code", ""))}">
                <button type="submit" class="btn btn-primary">Create account</button>
            </form>
            <p class="text-muted">Already registered? <a href="{Component.escape(login_href)}">Log in</a></p>
        </div>"""


def _form_text(form, key: str) -> str:
    value = form.get(key)
    return value.strip() if isinstance(value, str) else ""


@auth_router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, next: Optional[str] = None, registered: Optional[str] = None):
    """Render the login form; an unsafe `next` is dropped silently."""
    next_path = safe_next_or(next)
    notice = REGISTERED_NOTICE if registered == "1" else ""
    resp = page(request, "Log in", _login_form(next_path=next_path, notice=notice))
    resp.headers.update(PRIVATE_NO_STORE)
    return resp


@auth_router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request):
    """Sign in with email/password and start a server-side session.

    Behavior:
        - Provider rejection → form re-rendered with the provider's message.
        - The signup display name (user metadata) is copied into the profile
          row; failure there is reported and the login is not completed.
        - Redirect (303): staff → safe `next` or /instructor; students →
          /dashboard. A failed role lookup also lands on /dashboard, where the
          access guard takes over.
    """
    form = await request.form()
    email = _form_text(form, "email")
    password = form.get("password") if isinstance(form.get("password"), str) else ""
    next_path = safe_next_or(_form_text(form, "next"))
    clients = request.app.state.clients

    def _render_error(message: str) -> HTMLResponse:
        resp = page(request, "Log in", _login_form(next_path=next_path, email=email, error=message), status_code=400)
        resp.headers.update(PRIVATE_NO_STORE)
        return resp

    if not email or not password:
        return _render_error("Enter your email and password.")

    try:
        auth = SupabaseAuthAdapter(clients.anon())
        session = await asyncio.to_thread(auth.sign_in, email, password)
    except IdentityError as exc:
        return _render_error(f"Login failed: {exc.message}")
    except Exception as exc:
        logger.warning("Login unavailable: %s", exc.__class__.__name__)
        return _render_error("Login failed: the sign-in service is unavailable.")

    display_name = str(session.user.metadata.get("name_romaji") or "").strip()
    if display_name:
        try:
            repo = ChecklistRepo(clients.for_access_token(session.access_token))
            await asyncio.to_thread(repo.ensure_display_name, session.user.id, display_name)
        except RemoteDataError as exc:
            return _render_error(f"Could not save profile name: {exc.message}")

    settings = load_settings()
    store = request.app.state.session_store
    rec = store.create(
        user_id=session.user.id,
        email=session.user.email or email,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        ttl_seconds=settings.session_ttl_seconds,
    )

    role: Optional[str] = None
    try:
        role = await asyncio.to_thread(RoleResolver(clients).fetch_role, session.user.id, session.access_token)
    except RoleLookupError:
        role = None

    resp = redirect(post_login_destination(role, next_path), status_code=303)
    max_age = rec.ttl_seconds if settings.environment in ("prod", "production", "stage", "staging") else None
    set_session_cookie(resp, rec.session_id, environment=settings.environment, max_age=max_age)
    logger.info("Session started for role=%s", role or "unknown")
    return resp


@auth_router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request, next: Optional[str] = None):
    resp = page(request, "Sign up", _signup_form(next_path=safe_next_or(next)))
    resp.headers.update(PRIVATE_NO_STORE)
    return resp


@auth_router.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request):
    """Create an account carrying display name and invite code as metadata.

    Behavior:
        - Display name and invite code are required (trimmed); missing values
          re-render the form with a hint and no provider call.
        - The invite code is validated by the hosted backend during sign-up.
        - Success → 303 to /login?registered=1 (keeping a safe `next`).
    """
    form = await request.form()
    values = {
        "name_romaji": _form_text(form, "name_romaji"),
        "email": _form_text(form, "email"),
        "invite_code": _form_text(form, "invite_code"),
    }
    password = form.get("password") if isinstance(form.get("password"), str) else ""
    next_path = safe_next_or(_form_text(form, "next"))

    def _render_error(message: str) -> HTMLResponse:
        resp = page(request, "Sign up", _signup_form(next_path=next_path, values=values, error=message), status_code=400)
        resp.headers.update(PRIVATE_NO_STORE)
        return resp

    if not values["name_romaji"]:
        return _render_error("Enter a display name.")
    if not values["invite_code"]:
        return _render_error("Enter your invite code.")
    if not values["email"] or not password:
        return _render_error("Enter your email and a password.")

    try:
        auth = SupabaseAuthAdapter(request.app.state.clients.anon())
        await asyncio.to_thread(
            auth.sign_up,
            values["email"],
            password,
            {"name_romaji": values["name_romaji"], "invite_code": values["invite_code"]},
        )
    except IdentityError as exc:
        return _render_error(f"Sign-up failed: {exc.message}")
    except Exception as exc:
        logger.warning("Sign-up unavailable: %s", exc.__class__.__name__)
        return _render_error("Sign-up failed: the sign-in service is unavailable.")

    return redirect(_with_next("/login", next_path, registered="1"), status_code=303)


@auth_router.get("/logout")
async def logout(request: Request):
    """Revoke the provider session (best effort), drop the app session, go to /login.

    Security:
        Adds `Cache-Control: private, no-store` and expires the session cookie.
    """
    store = request.app.state.session_store
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if sid:
        rec = store.get(sid)
        if rec is not None:
            try:
                auth = SupabaseAuthAdapter(request.app.state.clients.anon())
                await asyncio.to_thread(auth.sign_out, rec.access_token)
            except Exception as exc:
                logger.warning("Provider sign-out skipped: %s", exc.__class__.__name__)
        store.delete(sid)
    resp = redirect("/login")
    clear_session_cookie(resp, environment=load_settings().environment)
    return resp
