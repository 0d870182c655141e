from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse

from backoffice.api.dependencies import LoginRequired
from backoffice.api.health import router as health_router
from backoffice.api.login import router as login_router
from backoffice.api.users import router as users_router
from backoffice.core.config import SETTINGS
from backoffice.core.logging import setup_logging
from backoffice.db.engine import lifespan_db
from backoffice.db.redis import lifespan_redis
from backoffice.middleware.metrics import MetricsMiddleware
from backoffice.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one side fails.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="backoffice",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last-added runs first: RequestContext (outermost) → Metrics → route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(LoginRequired)
async def redirect_to_login(_request: Request, exc: LoginRequired) -> RedirectResponse:
    return RedirectResponse(url=exc.login_url, status_code=status.HTTP_303_SEE_OTHER)


app.include_router(health_router)
app.include_router(login_router)
app.include_router(users_router)

logger.info(
    "backoffice started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
