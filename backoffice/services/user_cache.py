"""Post-registration cache markers.

After a user is created, a presence marker is written under
``user.<id>``.  The value is the creation timestamp; readers only ever
ask whether the key exists.
"""

from __future__ import annotations

import logging

from backoffice.core.config import SETTINGS
from backoffice.core.metrics import CACHE_OPERATIONS
from backoffice.models.user import User
from backoffice.services.cache import CacheService

logger = logging.getLogger(__name__)


def created_marker_key(user_id: int) -> str:
    return f"user.{user_id}"


async def mark_created(
    cache: CacheService,
    user: User,
    *,
    ttl_seconds: int | None = None,
) -> str:
    key = created_marker_key(user.id)
    await cache.set(
        key,
        user.created_at.isoformat(),
        ttl_seconds or SETTINGS.user_cache_ttl_seconds,
    )
    CACHE_OPERATIONS.labels(operation="write").inc()
    logger.debug("Cache marker written  key=%s", key)
    return key


async def was_created(cache: CacheService, user_id: int) -> bool:
    found = await cache.has(created_marker_key(user_id))
    CACHE_OPERATIONS.labels(operation="hit" if found else "miss").inc()
    return found
