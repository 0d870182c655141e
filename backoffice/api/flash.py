"""Flash state: data that survives exactly one redirect.

A failed registration redirects back to the form.  The field errors
and the submitted values (passwords excluded) travel in a short-lived
signed cookie that the form page reads once and deletes.
"""

from __future__ import annotations

import json
import logging

import jwt
from fastapi import Request, Response
from pydantic import BaseModel, Field

from backoffice.services import token_service
from backoffice.services.validation import FIELDS, MAX_LENGTHS

logger = logging.getLogger(__name__)

FLASH_COOKIE = "flash"

# Passwords are never echoed back into the form.
_FLASHED_FIELDS = tuple(f for f in FIELDS if f != "password")
_DEFAULT_MAX = 32

# JSON bytes allowed for echoed values.  Errors plus this budget keep
# the signed cookie well under the 4096 bytes browsers store.
_OLD_BUDGET = 1024


class Flash(BaseModel):
    errors: dict[str, list[str]] = Field(default_factory=dict)
    old: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_submission(
        cls, errors: dict[str, list[str]], form: dict[str, object]
    ) -> Flash:
        old: dict[str, str] = {}
        budget = _OLD_BUDGET
        for field in _FLASHED_FIELDS:
            raw = form.get(field)
            if raw is None:
                continue
            value = str(raw)[: MAX_LENGTHS.get(field, _DEFAULT_MAX)]
            size = len(json.dumps(value))
            if size > budget:
                continue
            budget -= size
            old[field] = value
        return cls(errors=errors, old=old)

    def first_error(self, field: str) -> str | None:
        messages = self.errors.get(field)
        return messages[0] if messages else None


def flash(response: Response, data: Flash) -> None:
    response.set_cookie(
        key=FLASH_COOKIE,
        value=token_service.create_flash_token(data.model_dump()),
        httponly=True,
        samesite="lax",
        secure=False,
        path="/",
        max_age=token_service.FLASH_TTL_SEC,
    )


def read_flash(request: Request) -> Flash:
    """Decode the flash cookie; missing, expired or tampered means empty."""
    cookie = request.cookies.get(FLASH_COOKIE)
    if not cookie:
        return Flash()
    try:
        return Flash.model_validate(token_service.decode_flash_token(cookie))
    except jwt.InvalidTokenError:
        logger.debug("Discarding unreadable flash cookie")
        return Flash()


def forget_flash(response: Response) -> None:
    response.delete_cookie(FLASH_COOKIE, path="/")
