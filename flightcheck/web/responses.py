"""
Response and request-context helpers shared by the page routers.

Why:
    Personalized pages must never be cached by intermediaries, and every
    router needs the same access to the signed-in user and a user-scoped data
    client. Keeping these helpers here lets routers stay free of imports from
    `main` (which in turn imports the routers).
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse

from flightcheck.checklist.repo_supabase import ChecklistRepo
from .components import Component, Layout
from .config import load_settings
from .routes.security import request_app_base


PRIVATE_NO_STORE = {"Cache-Control": "private, no-store"}


def layout_response(
    request: Request,
    layout: Layout,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> HTMLResponse:
    """Render a Layout and return an HTMLResponse.

    Behavior:
        - Personalized responses (a user is on the request) default to
          `Cache-Control: private, no-store`.
        - Caller-provided headers override the defaults.
    Permissions:
        None. The access guard has already run; handlers enforce anything
        page-specific before calling this helper.
    """
    response = HTMLResponse(content=layout.render(), status_code=status_code)
    if current_user(request) and not (headers and "Cache-Control" in headers):
        response.headers["Cache-Control"] = "private, no-store"
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    return response


def page(request: Request, title: str, content: str, *, status_code: int = 200, scripts=()) -> HTMLResponse:
    layout = Layout(
        title=title,
        content=content,
        user=current_user(request),
        current_path=request.url.path,
        scripts=scripts,
    )
    return layout_response(request, layout, status_code=status_code)


def redirect(url: str, *, status_code: int = 302) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status_code, headers=dict(PRIVATE_NO_STORE))


def alert(message: str, *, kind: str = "error") -> str:
    return f'<div class="alert alert-{Component.escape(kind)}" role="alert">{Component.escape(message)}</div>'


def current_user(request: Request) -> Optional[dict]:
    return getattr(request.state, "user", None)


def user_client(request: Request) -> Any:
    """Supabase client scoped to the caller's access token (server-side only)."""
    token = getattr(request.state, "access_token", None) or ""
    return request.app.state.clients.for_access_token(token)


def user_repo(request: Request) -> ChecklistRepo:
    return ChecklistRepo(user_client(request))


def app_base(request: Request) -> str:
    """Origin used inside QR payloads: APP_BASE_URL when set, else the request origin."""
    return load_settings().app_base_url or request_app_base(request)
