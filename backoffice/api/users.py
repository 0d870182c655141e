"""User administration pages.

  GET  /users         users.index   listing
  GET  /users/create  users.create  registration form
  POST /users         users.store   create a user

All three sit behind the session gate: without a valid session cookie
the request is redirected to /login before the handler runs.  A failed
POST redirects back to the form with field errors in the flash cookie;
a successful one redirects to the listing (POST/redirect/GET).
"""

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from backoffice.api.dependencies import (
    Cache,
    Committer,
    Countries,
    SessionUser,
    Users,
)
from backoffice.api.flash import Flash, flash, forget_flash, read_flash
from backoffice.models.country import Country
from backoffice.services import user_cache, users_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

_PAGE_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title} | backoffice</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 2rem; background: #f5f5f5; }}
    .card {{ background: #fff; padding: 2rem; border-radius: 8px; max-width: 760px; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th, td {{ text-align: left; padding: .4rem; border-bottom: 1px solid #eee; }}
    label {{ display: block; font-size: .85rem; margin-top: .75rem; }}
    input, select {{ width: 100%; padding: .45rem; }}
    .error {{ color: #c00; font-size: .8rem; }}
    .badge {{ background: #0a7; color: #fff; border-radius: 4px; padding: 0 .3rem; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{title}</h1>
    {body}
  </div>
</body>
</html>
"""


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(_PAGE_HTML.format(title=html.escape(title), body=body))


def _input(name: str, label: str, form: Flash, input_type: str = "text") -> str:
    value = "" if input_type == "password" else form.old.get(name, "")
    error = form.first_error(name)
    return (
        f'<label for="{name}">{label}</label>'
        f'<input id="{name}" name="{name}" type="{input_type}" '
        f'value="{html.escape(value, quote=True)}">'
        + (f'<p class="error">{html.escape(error)}</p>' if error else "")
    )


def _country_select(countries: list[Country], form: Flash) -> str:
    selected = form.old.get("country", "")
    options = "".join(
        f'<option value="{c.id}"{" selected" if str(c.id) == selected else ""}>'
        f"{html.escape(c.name)}</option>"
        for c in countries
    )
    error = form.first_error("country")
    return (
        '<label for="country">Country</label>'
        f'<select id="country" name="country"><option value=""></option>{options}'
        "</select>"
        + (f'<p class="error">{html.escape(error)}</p>' if error else "")
    )


# ========================== GET /users ======================================


@router.get("", name="users.index")
async def index(
    _user_id: SessionUser,
    users: Users,
    countries: Countries,
    cache: Cache,
) -> HTMLResponse:
    names = {c.id: c.name for c in await countries.list_all()}
    rows = []
    for u in await users_service.list_users(users):
        badge = (
            ' <span class="badge">new</span>'
            if await user_cache.was_created(cache, u.id)
            else ""
        )
        rows.append(
            f"<tr><td>{u.id}</td><td>{html.escape(u.full_name)}{badge}</td>"
            f"<td>{html.escape(u.email)}</td>"
            f"<td>{html.escape(names.get(u.country_id, ''))}</td></tr>"
        )
    body = (
        '<p><a href="/users/create">New user</a></p>'
        "<table><thead><tr><th>#</th><th>Name</th><th>Email</th><th>Country</th>"
        f"</tr></thead><tbody>{''.join(rows)}</tbody></table>"
    )
    return _page("Users", body)


# ========================== GET /users/create ===============================


@router.get("/create", name="users.create")
async def create(
    request: Request,
    _user_id: SessionUser,
    countries: Countries,
) -> HTMLResponse:
    form = read_flash(request)
    body = (
        '<form method="post" action="/users">'
        + _input("first_name", "First name", form)
        + _input("last_name", "Last name", form)
        + _input("email", "Email", form, "email")
        + _input("password", "Password", form, "password")
        + _input("password_confirmation", "Confirm password", form, "password")
        + _country_select(await countries.list_all(), form)
        + '<p><button type="submit">Create</button></p></form>'
    )
    response = _page("New user", body)
    forget_flash(response)
    return response


# ========================== POST /users =====================================


@router.post("", name="users.store")
async def store(
    request: Request,
    user_id: SessionUser,
    users: Users,
    countries: Countries,
    cache: Cache,
    commit: Committer,
) -> RedirectResponse:
    submitted = dict((await request.form()).items())

    try:
        user = await users_service.create_user(
            submitted,
            users=users,
            countries=countries,
            cache=cache,
            commit=commit,
        )
    except users_service.RegistrationValidationError as e:
        response = RedirectResponse(
            url=request.app.url_path_for("users.create"),
            status_code=status.HTTP_303_SEE_OTHER,
        )
        flash(response, Flash.from_submission(e.errors, submitted))
        return response

    logger.info(
        "User created by operator  operator_id=%s user_id=%d", user_id, user.id
    )
    return RedirectResponse(
        url=request.app.url_path_for("users.index"),
        status_code=status.HTTP_303_SEE_OTHER,
    )
