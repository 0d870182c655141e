from __future__ import annotations

import threading
from typing import Protocol

from backoffice.models.user import NewUser, User


class EmailAlreadyExistsError(Exception):
    """Raised by a store when an insert would duplicate an email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"email already exists: {email}")
        self.email = email


class UserRepo(Protocol):
    async def get_by_email(self, email: str) -> User | None: ...
    async def list_all(self) -> list[User]: ...
    async def insert(self, new_user: NewUser, *, password_hash: str) -> User: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[int, User] = {}
        self._next_id = 1
        # Check-and-insert must be one step; the validator's lookup
        # happened earlier and may be stale by now.
        self._lock = threading.Lock()

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(email.strip().lower())

    async def list_all(self) -> list[User]:
        return [self._by_id[k] for k in sorted(self._by_id)]

    async def insert(self, new_user: NewUser, *, password_hash: str) -> User:
        key = new_user.email.strip().lower()
        with self._lock:
            if key in self._by_email:
                raise EmailAlreadyExistsError(new_user.email)
            user = User.from_new(
                new_user, id=self._next_id, password_hash=password_hash
            )
            self._next_id += 1
            self._by_email[key] = user
            self._by_id[user.id] = user
        return user

    def clear(self) -> None:
        with self._lock:
            self._by_email.clear()
            self._by_id.clear()
            self._next_id = 1
