from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class NewUser:
    """Validated registration payload, before hashing and insert."""

    first_name: str
    last_name: str
    email: str
    password: str
    country_id: int

    def __repr__(self) -> str:
        # Keep the plaintext password out of logs and tracebacks.
        return (
            f"NewUser(first_name={self.first_name!r}, last_name={self.last_name!r}, "
            f"email={self.email!r}, password='***', country_id={self.country_id!r})"
        )


@dataclass(frozen=True, slots=True)
class User:
    id: int
    first_name: str
    last_name: str
    email: str
    password_hash: str
    country_id: int
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @staticmethod
    def from_new(new_user: NewUser, *, id: int, password_hash: str) -> User:
        # Identifier assignment is the store's job; it passes the id in.
        return User(
            id=id,
            first_name=new_user.first_name,
            last_name=new_user.last_name,
            email=new_user.email,
            password_hash=password_hash,
            country_id=new_user.country_id,
            created_at=datetime.now(UTC),
        )
