"""PostgreSQL access for the user and country stores.

Only built when DATABASE_URL is set.  Without it ``engine`` and
``async_session_factory`` stay None and the request dependencies in
backoffice.api.dependencies hand out the in-memory stores.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backoffice.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine = (
    create_async_engine(SETTINGS.database_url, pool_pre_ping=True)
    if SETTINGS.database_url
    else None
)
# Rows read back after commit (the created user) must not expire.
async_session_factory = (
    async_sessionmaker(engine, expire_on_commit=False) if engine is not None else None
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request.

    A handler may commit early (users.store commits before writing the
    cache marker); whatever is still pending is committed here, and an
    exception rolls it back.
    """
    if async_session_factory is None:
        raise RuntimeError("DATABASE_URL is not configured")
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


@asynccontextmanager
async def lifespan_db() -> AsyncGenerator[None, None]:
    if engine is None:
        logger.info("No DATABASE_URL configured; using in-memory stores")
        yield
        return

    logger.info("User store on %s", engine.url.render_as_string(hide_password=True))
    try:
        yield
    finally:
        await engine.dispose()
