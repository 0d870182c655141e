from __future__ import annotations

import asyncio
import os

# Settings are read at import time; pin the in-memory backends first.
os.environ["APP_ENV"] = "test"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backoffice.api.dependencies import (  # noqa: E402
    SESSION_COOKIE,
    country_repo,
    user_repo,
)
from backoffice.main import app  # noqa: E402
from backoffice.models.country import Country  # noqa: E402
from backoffice.models.user import NewUser, User  # noqa: E402
from backoffice.services import auth_service, token_service  # noqa: E402
from backoffice.services.cache import cache_service  # noqa: E402

OPERATOR_EMAIL = "operator@example.com"
OPERATOR_PASSWORD = "operator-pass"


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Clear the in-memory user and country stores between tests."""
    user_repo.clear()
    country_repo.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    # Redirects are the responses under test; never follow them.
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def country() -> Country:
    c = Country(id=1, name="Colombia", code="CO")
    country_repo.add(c)
    return c


@pytest.fixture
def operator(country: Country) -> User:
    """The already-registered user who is signed in and submits the form."""
    return add_user(email=OPERATOR_EMAIL, password=OPERATOR_PASSWORD, country=country)


@pytest.fixture
def auth_client(client: TestClient, operator: User) -> TestClient:
    client.cookies.set(
        SESSION_COOKIE, token_service.create_session_token(sub=str(operator.id))
    )
    return client


@pytest.fixture
def valid_form(country: Country) -> dict[str, str]:
    return {
        "first_name": "Jhon",
        "last_name": "Doe",
        "email": "jhon@mail.com",
        "password": "admin123456",
        "password_confirmation": "admin123456",
        "country": str(country.id),
    }


def add_user(
    *,
    email: str,
    country: Country,
    password: str = "secret-pass",
    first_name: str = "Existing",
    last_name: str = "User",
) -> User:
    """Insert a user straight into the in-memory store."""
    new_user = NewUser(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        country_id=country.id,
    )
    return asyncio.run(
        user_repo.insert(
            new_user, password_hash=auth_service.hash_password(password)
        )
    )


def all_users() -> list[User]:
    return asyncio.run(user_repo.list_all())
