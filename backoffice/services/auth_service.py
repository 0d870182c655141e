from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from backoffice.models.user import User
from backoffice.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

# argon2id with library defaults; salt and parameters are embedded in
# every encoded hash, so they can be raised later without a migration.
_ph = PasswordHasher()


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


# Must swallow argon2 errors: a corrupt stored hash is a failed login,
# not a 500.
def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def needs_rehash(password_hash: str) -> bool:
    try:
        return _ph.check_needs_rehash(password_hash)
    except InvalidHash:
        return False


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User | None:
    user = await repo.get_by_email(email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    if needs_rehash(user.password_hash):
        # Users are immutable here; the upgrade happens once an update
        # operation exists.
        logger.info("Stored hash uses outdated parameters  user_id=%s", user.id)
    return user
