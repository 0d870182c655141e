from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping

from backoffice.core.metrics import REGISTRATION_REJECTIONS, USERS_REGISTERED
from backoffice.models.user import User
from backoffice.repos.country_repo import CountryRepo
from backoffice.repos.user_repo import EmailAlreadyExistsError, UserRepo
from backoffice.services import auth_service, user_cache
from backoffice.services.cache import CacheService
from backoffice.services.validation import (
    RegistrationValidationError,
    RegistrationValidator,
    taken_message,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Commit",
    "RegistrationValidationError",
    "create_user",
    "list_users",
]


# Makes the inserted user durable; the marker and counter follow it.
Commit = Callable[[], Awaitable[None]]


async def list_users(users: UserRepo) -> list[User]:
    return await users.list_all()


def _record_rejection(error: RegistrationValidationError) -> None:
    for field in error.errors:
        REGISTRATION_REJECTIONS.labels(field=field).inc()
    logger.warning("Registration rejected  fields=%s", ",".join(error.errors))


async def create_user(
    form: Mapping[str, object],
    *,
    users: UserRepo,
    countries: CountryRepo,
    cache: CacheService,
    commit: Commit | None = None,
) -> User:
    """Validate, hash, insert, commit, then write the ``user.<id>`` marker.

    Raises RegistrationValidationError with every field error when the
    form is invalid, and also when the store's unique constraint catches
    a duplicate email that slipped past validation.  Nothing is written
    in either case, and a failed ``commit`` leaves no marker behind.
    """
    validator = RegistrationValidator(users, countries)
    try:
        new_user = await validator.validate(form)
    except RegistrationValidationError as e:
        _record_rejection(e)
        raise

    password_hash = auth_service.hash_password(new_user.password)

    try:
        user = await users.insert(new_user, password_hash=password_hash)
    except EmailAlreadyExistsError:
        logger.warning("Duplicate email caught at insert  email=%s", new_user.email)
        error = RegistrationValidationError({"email": [taken_message("email")]})
        _record_rejection(error)
        raise error from None

    if commit is not None:
        await commit()

    await user_cache.mark_created(cache, user)
    USERS_REGISTERED.inc()
    logger.info(
        "User registered  user_id=%d email=%s country_id=%d",
        user.id,
        user.email,
        user.country_id,
    )
    return user
