"""Login entry point: the page every users.* route redirects to."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

from backoffice.api.login import safe_next
from backoffice.models.user import User
from backoffice.services import token_service
from tests.conftest import OPERATOR_EMAIL, OPERATOR_PASSWORD

# ---- GET /login ----


def test_login_page_renders(client: TestClient) -> None:
    resp = client.get("/login")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert '<form method="post" action="/login">' in resp.text
    assert 'value="/users"' in resp.text


def test_login_page_preserves_next(client: TestClient) -> None:
    resp = client.get("/login", params={"next": "/users/create"})
    assert 'value="/users/create"' in resp.text


# ---- POST /login ----


def test_login_success_sets_session_and_redirects(
    client: TestClient, operator: User
) -> None:
    resp = client.post(
        "/login",
        data={
            "email": OPERATOR_EMAIL,
            "password": OPERATOR_PASSWORD,
            "next": "/users/create",
        },
    )

    assert resp.status_code == 302
    assert resp.headers["location"] == "/users/create"
    claims = token_service.decode_session_token(resp.cookies["session"])
    assert claims["sub"] == str(operator.id)
    assert claims["aud"] == token_service.SESSION_AUDIENCE


def test_login_email_is_case_insensitive(client: TestClient, operator: User) -> None:
    resp = client.post(
        "/login",
        data={"email": OPERATOR_EMAIL.upper(), "password": OPERATOR_PASSWORD},
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/users"


def test_login_failure_returns_401_without_cookie(
    client: TestClient, operator: User
) -> None:
    resp = client.post(
        "/login", data={"email": OPERATOR_EMAIL, "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert "Invalid email or password" in resp.text
    assert resp.cookies.get("session") is None


def test_login_unknown_user_returns_401(client: TestClient) -> None:
    resp = client.post(
        "/login", data={"email": "nobody@example.com", "password": "anything"}
    )
    assert resp.status_code == 401


def test_session_from_login_opens_users_pages(
    client: TestClient, operator: User
) -> None:
    client.post(
        "/login", data={"email": OPERATOR_EMAIL, "password": OPERATOR_PASSWORD}
    )
    resp = client.get("/users")
    assert resp.status_code == 200
    assert OPERATOR_EMAIL in resp.text


def test_logout_clears_session(client: TestClient, operator: User) -> None:
    client.post(
        "/login", data={"email": OPERATOR_EMAIL, "password": OPERATOR_PASSWORD}
    )
    resp = client.post("/logout")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"

    assert client.get("/users").status_code == 303


# ---- session cookie edge cases ----


def test_expired_session_cookie_redirects_to_login(client: TestClient) -> None:
    now = datetime.now(UTC)
    payload = {
        "sub": "1",
        "iss": token_service.ISSUER,
        "aud": token_service.SESSION_AUDIENCE,
        "exp": now - timedelta(minutes=1),
        "iat": now - timedelta(minutes=2),
        "jti": str(uuid.uuid4()),
    }
    expired = pyjwt.encode(payload, token_service._private_key, algorithm="ES256")
    client.cookies.set("session", expired)

    resp = client.get("/users/create")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login?next=/users/create"


# ---- next sanitizing ----


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, "/users"),
        ("", "/users"),
        ("/users/create", "/users/create"),
        ("https://evil.example/", "/users"),
        ("//evil.example/", "/users"),
        ("users", "/users"),
    ],
)
def test_safe_next(raw: str | None, expected: str) -> None:
    assert safe_next(raw) == expected
