"""Registration form validation.

Rules are plain closures over ``(field, value, data)`` that return an
error message or None.  Store-backed checks (email uniqueness, country
existence) are async closures over a repo and only run once the field's
format rules have passed, so a malformed email never costs a query.

Every field is checked on every call.  The caller gets all field errors
at once, keyed by field name in form order.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping

from backoffice.models.user import NewUser
from backoffice.repos.country_repo import CountryRepo
from backoffice.repos.user_repo import UserRepo

FIELDS = ("first_name", "last_name", "email", "password", "country")

# Passed through untouched: leading/trailing spaces in a password are
# part of the password.
_UNTRIMMED = frozenset({"password", "password_confirmation"})

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

# Upper bounds shared with the flash cookie, which never echoes more.
MAX_LENGTHS = {"first_name": 80, "last_name": 80, "email": 320, "password": 80}

# countries.id is a 32-bit INTEGER column.
_MAX_ROW_ID = 2**31 - 1

Rule = Callable[[str, str, Mapping[str, str | None]], str | None]
Lookup = Callable[[str, str], Awaitable[str | None]]


class RegistrationValidationError(Exception):
    """One or more fields failed validation.

    ``errors`` maps field name to its messages, in form order.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(", ".join(errors))
        self.errors = errors


def _label(field: str) -> str:
    return field.replace("_", " ")


def required_message(field: str) -> str:
    return f"The {_label(field)} field is required."


def taken_message(field: str) -> str:
    return f"The {_label(field)} has already been taken."


# ---------------------------------------------------------------------------
# Format rules
# ---------------------------------------------------------------------------


def min_length(n: int) -> Rule:
    def rule(field: str, value: str, _data: Mapping[str, str | None]) -> str | None:
        if len(value) < n:
            return f"The {_label(field)} must be at least {n} characters."
        return None

    return rule


def max_length(n: int) -> Rule:
    def rule(field: str, value: str, _data: Mapping[str, str | None]) -> str | None:
        if len(value) > n:
            return f"The {_label(field)} may not be greater than {n} characters."
        return None

    return rule


def email_format(field: str, value: str, _data: Mapping[str, str | None]) -> str | None:
    if not _EMAIL_RE.match(value):
        return f"The {_label(field)} must be a valid email address."
    return None


def numeric(field: str, value: str, _data: Mapping[str, str | None]) -> str | None:
    if not _NUMERIC_RE.match(value):
        return f"The {_label(field)} must be a number."
    return None


def confirmed(field: str, value: str, data: Mapping[str, str | None]) -> str | None:
    if data.get(f"{field}_confirmation") != value:
        return f"The {_label(field)} confirmation does not match."
    return None


# ---------------------------------------------------------------------------
# Store-backed rules
# ---------------------------------------------------------------------------


def unique_email(users: UserRepo) -> Lookup:
    async def lookup(field: str, value: str) -> str | None:
        if await users.get_by_email(value) is not None:
            return taken_message(field)
        return None

    return lookup


def country_exists(countries: CountryRepo) -> Lookup:
    async def lookup(field: str, value: str) -> str | None:
        country_id = as_int(value)
        if (
            country_id is None
            or not 1 <= country_id <= _MAX_ROW_ID
            or not await countries.exists(country_id)
        ):
            return f"The selected {_label(field)} is invalid."
        return None

    return lookup


def as_int(value: str) -> int | None:
    """Integral value of a numeric string ("5", "5.0", "5e0"), else None."""
    try:
        number = float(value)
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def normalize_input(form: Mapping[str, object]) -> dict[str, str | None]:
    """Trim strings (passwords excepted) and turn empty values into None."""
    data: dict[str, str | None] = {}
    for key, raw in form.items():
        if raw is None:
            data[key] = None
            continue
        value = raw if isinstance(raw, str) else str(raw)
        if key not in _UNTRIMMED:
            value = value.strip()
        data[key] = value or None
    return data


class RegistrationValidator:
    def __init__(self, users: UserRepo, countries: CountryRepo) -> None:
        self._rules: dict[str, tuple[Rule, ...]] = {
            "first_name": (min_length(2), max_length(MAX_LENGTHS["first_name"])),
            "last_name": (max_length(MAX_LENGTHS["last_name"]),),
            "email": (email_format, max_length(MAX_LENGTHS["email"])),
            "password": (
                min_length(6),
                max_length(MAX_LENGTHS["password"]),
                confirmed,
            ),
            "country": (numeric,),
        }
        self._lookups: dict[str, tuple[Lookup, ...]] = {
            "email": (unique_email(users),),
            "country": (country_exists(countries),),
        }

    async def errors_for(self, form: Mapping[str, object]) -> dict[str, list[str]]:
        data = normalize_input(form)
        errors: dict[str, list[str]] = {}

        for field in FIELDS:
            value = data.get(field)
            if value is None:
                errors[field] = [required_message(field)]
                continue

            messages = [
                message
                for rule in self._rules[field]
                if (message := rule(field, value, data)) is not None
            ]
            if not messages:
                for lookup in self._lookups.get(field, ()):
                    message = await lookup(field, value)
                    if message is not None:
                        messages.append(message)

            if messages:
                errors[field] = messages

        return errors

    async def validate(self, form: Mapping[str, object]) -> NewUser:
        """Return the typed payload or raise RegistrationValidationError."""
        errors = await self.errors_for(form)
        if errors:
            raise RegistrationValidationError(errors)

        data = normalize_input(form)
        return NewUser(
            first_name=data["first_name"],  # type: ignore[arg-type]
            last_name=data["last_name"],  # type: ignore[arg-type]
            email=data["email"].lower(),  # type: ignore[union-attr]
            password=data["password"],  # type: ignore[arg-type]
            country_id=as_int(data["country"]),  # type: ignore[arg-type]
        )
