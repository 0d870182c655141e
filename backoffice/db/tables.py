"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in backoffice/models/.
Repos convert between rows and dataclasses; nothing outside
backoffice/repos/ touches a Row class.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.db.engine import Base


class CountryRow(Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(2), unique=True, nullable=False)


class UserRow(Base):
    __tablename__ = "users"
    # Named as in the migration so autogenerate sees no drift.  The
    # unique constraint is what actually prevents duplicate registrations
    # under concurrency; the validator's lookup is only a fast path.
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# Serves the case-insensitive lookups in PgUserRepo.get_by_email.
Index("ix_users_email_lower", func.lower(UserRow.email))
