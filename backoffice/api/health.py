"""Operational endpoints: health, readiness and the Prometheus scrape.

  /health (liveness): the process answers.  Always 200; the body says
    which backing services are reachable ("ok", "degraded",
    "not_configured").  A degraded Redis only costs the cache markers.

  /ready (readiness): 503 when the database is configured but
    unreachable.  Registration cannot work without the user store, so
    the load balancer should stop routing here until it recovers.

  /metrics: Prometheus text format.  Not instrumented itself and left
    unauthenticated; restrict it at the network layer.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text

from backoffice.db.engine import engine
from backoffice.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["operations"])


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
        return "ok"
    except Exception:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"


async def _check_database() -> str:
    if engine is None:
        return "not_configured"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"


@router.get("/health")
async def health() -> dict:
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _check_database() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
