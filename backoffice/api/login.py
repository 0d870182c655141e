"""Login UI: minimal HTML form that sets a signed session cookie.

Every users.* route redirects here when the session cookie is missing
or invalid.  After a successful login the browser is sent back to
?next (local paths only) or to the user listing.

Inline HTML keeps the service template-free; replace with a template
engine once there is more than a couple of pages.
"""

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Form, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from backoffice.api.dependencies import SESSION_COOKIE, Users
from backoffice.services import auth_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["login"])

_DEFAULT_NEXT = "/users"

_LOGIN_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Login | backoffice</title>
  <style>
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      font-family: system-ui, -apple-system, sans-serif;
      display: flex; justify-content: center; align-items: center;
      min-height: 100vh; background: #f5f5f5;
    }}
    .card {{
      background: #fff; padding: 2rem; border-radius: 8px;
      box-shadow: 0 2px 8px rgba(0,0,0,.1); width: 320px;
    }}
    h1 {{ font-size: 1.25rem; margin-bottom: 1.5rem; text-align: center; }}
    label {{ display: block; font-size: .85rem; margin-bottom: .25rem; }}
    input[type=email], input[type=password] {{
      width: 100%; padding: .5rem; margin-bottom: 1rem;
      border: 1px solid #ccc; border-radius: 4px; font-size: .95rem;
    }}
    button {{
      width: 100%; padding: .6rem; background: #111; color: #fff;
      border: none; border-radius: 4px; font-size: .95rem; cursor: pointer;
    }}
    .error {{ color: #c00; font-size: .85rem; margin-bottom: 1rem; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>Sign in</h1>
    {error}
    <form method="post" action="/login">
      <label for="email">Email</label>
      <input id="email" name="email" type="email" required autofocus>
      <label for="password">Password</label>
      <input id="password" name="password" type="password" required>
      <input type="hidden" name="next" value="{next_url}">
      <button type="submit">Log in</button>
    </form>
  </div>
</body>
</html>
"""


def safe_next(next_url: str | None) -> str:
    """Only same-site absolute paths; anything else falls back to /users."""
    if not next_url or not next_url.startswith("/") or next_url.startswith("//"):
        return _DEFAULT_NEXT
    return next_url


def _render(next_url: str, error: str | None = None) -> str:
    error_block = f'<p class="error">{html.escape(error)}</p>' if error else ""
    return _LOGIN_HTML.format(
        next_url=html.escape(safe_next(next_url), quote=True),
        error=error_block,
    )


# ========================== GET /login ======================================


@router.get("/login", name="login")
def login_page(next: str | None = Query(None)) -> HTMLResponse:
    return HTMLResponse(_render(next or _DEFAULT_NEXT))


# ========================== POST /login =====================================


@router.post("/login", name="login.submit", response_model=None)
async def login_submit(
    users: Users,
    email: str = Form(...),
    password: str = Form(...),
    next: str = Form(_DEFAULT_NEXT),
) -> RedirectResponse | HTMLResponse:
    """Validate credentials, set session cookie, redirect to *next*."""
    email = email.strip().lower()
    user = await auth_service.authenticate_user(users, email, password)
    if user is None:
        logger.warning("Login failed  email=%s", email)
        return HTMLResponse(
            _render(next, "Invalid email or password."), status_code=401
        )

    response = RedirectResponse(url=safe_next(next), status_code=302)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token_service.create_session_token(sub=str(user.id)),
        httponly=True,
        samesite="lax",
        # Secure=False only because dev runs on plain http://localhost.
        secure=False,
        path="/",
        max_age=token_service.SESSION_TTL_MIN * 60,
    )
    logger.info("Login succeeded  user_id=%s", user.id)
    return response


# ========================== POST /logout ====================================


@router.post("/logout", name="logout")
def logout() -> RedirectResponse:
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response
