"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db.tables import UserRow
from backoffice.models.user import NewUser, User
from backoffice.repos.user_repo import EmailAlreadyExistsError

logger = logging.getLogger(__name__)


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserRow).where(
            func.lower(UserRow.email) == email.strip().lower()
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def list_all(self) -> list[User]:
        stmt = select(UserRow).order_by(UserRow.id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_user(r) for r in rows]

    async def insert(self, new_user: NewUser, *, password_hash: str) -> User:
        row = UserRow(
            first_name=new_user.first_name,
            last_name=new_user.last_name,
            email=new_user.email.strip().lower(),
            password_hash=password_hash,
            country_id=new_user.country_id,
            created_at=datetime.now(UTC),
        )
        # SAVEPOINT so a constraint failure leaves the request session usable.
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            if await self.get_by_email(new_user.email) is not None:
                logger.warning(
                    "Unique constraint rejected insert  email=%s", new_user.email
                )
                raise EmailAlreadyExistsError(new_user.email) from None
            raise
        return _row_to_user(row)


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        password_hash=row.password_hash,
        country_id=row.country_id,
        created_at=row.created_at,
    )
