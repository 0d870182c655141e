from __future__ import annotations

import logging
from typing import Annotated
from urllib.parse import quote

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.logging import user_id_var
from backoffice.db.engine import async_session_factory, get_async_session
from backoffice.repos.country_repo import CountryRepo, InMemoryCountryRepo
from backoffice.repos.pg_country_repo import PgCountryRepo
from backoffice.repos.pg_user_repo import PgUserRepo
from backoffice.repos.user_repo import InMemoryUserRepo, UserRepo
from backoffice.services import token_service
from backoffice.services.users_service import Commit
from backoffice.services.cache import CacheService, cache_service

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


# ---------------------------------------------------------------------------
# Auth gate
# ---------------------------------------------------------------------------


class LoginRequired(Exception):
    """No valid session on a protected route.

    Turned into a redirect to /login by the handler in backoffice.main.
    """

    def __init__(self, next_path: str) -> None:
        super().__init__(next_path)
        self.next_path = next_path

    @property
    def login_url(self) -> str:
        return f"/login?next={quote(self.next_path, safe='/')}"


def get_interactive_user(request: Request) -> str | None:
    """Return user_id from the session cookie, or None if not authenticated."""
    cookie = request.cookies.get(SESSION_COOKIE)
    if not cookie:
        return None
    try:
        claims = token_service.decode_session_token(cookie)
        return claims["sub"]
    except jwt.ExpiredSignatureError:
        logger.debug("Session cookie expired")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Invalid session cookie")
        return None


async def require_session_user(request: Request) -> str:
    """Dependency for every users.* route.  Runs before the handler body.

    Async so the operator id it puts in the logging context stays visible
    to the handler and the services it calls.
    """
    user_id = get_interactive_user(request)
    if user_id is None:
        logger.info(
            "Unauthenticated request sent to login  path=%s", request.url.path
        )
        raise LoginRequired(next_path=request.url.path)
    user_id_var.set(user_id)
    return user_id


SessionUser = Annotated[str, Depends(require_session_user)]


# ---------------------------------------------------------------------------
# Repositories and cache
# ---------------------------------------------------------------------------
# Module-level singletons serve when DATABASE_URL is unset; tests reset
# them in conftest.py.  With a database, each request gets Pg repos
# that share one session (FastAPI caches get_async_session per request).

user_repo = InMemoryUserRepo()
country_repo = InMemoryCountryRepo()


def _memory_user_repo() -> UserRepo:
    return user_repo


def _memory_country_repo() -> CountryRepo:
    return country_repo


def _pg_user_repo(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> UserRepo:
    return PgUserRepo(session)


def _pg_country_repo(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> CountryRepo:
    return PgCountryRepo(session)


async def _nothing_to_commit() -> None:
    return None


def _memory_commit() -> Commit:
    # In-memory inserts are visible as soon as insert() returns.
    return _nothing_to_commit


def _pg_commit(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Commit:
    return session.commit


if async_session_factory is None:
    get_user_repo = _memory_user_repo
    get_country_repo = _memory_country_repo
    get_commit = _memory_commit
else:
    get_user_repo = _pg_user_repo
    get_country_repo = _pg_country_repo
    get_commit = _pg_commit


def get_cache() -> CacheService:
    return cache_service


Users = Annotated[UserRepo, Depends(get_user_repo)]
Countries = Annotated[CountryRepo, Depends(get_country_repo)]
Cache = Annotated[CacheService, Depends(get_cache)]
Committer = Annotated[Commit, Depends(get_commit)]
