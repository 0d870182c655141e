"""Signed cookie tokens (ES256 JWTs).

Two cookies, one key pair, two audiences:

  session: "this browser signed in as user <sub>".  Checked by the
           auth gate on every users.* route.
  flash:   field errors + old input carried across the redirect after
           a failed registration.  Lives for one page view.

A token minted for one audience never validates as the other.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Dev/test: ephemeral key pair generated on import, so sessions do not
# survive a restart.  Production key loading is not implemented yet.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "backoffice"

SESSION_AUDIENCE = "backoffice-session"
SESSION_TTL_MIN = 120

FLASH_AUDIENCE = "backoffice-flash"
FLASH_TTL_SEC = 300


def _encode(payload: dict, *, audience: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    claims = {
        **payload,
        "iss": ISSUER,
        "aud": audience,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, _private_key, algorithm=ALGORITHM)


def _decode(token: str, *, audience: str, require: list[str]) -> dict:
    # Algorithm pinned to ES256: no alg:none, no HS256/ES256 confusion.
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=audience,
        options={"require": ["exp", "iat", "jti", *require]},
    )


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def create_session_token(*, sub: str) -> str:
    """Build and sign a session JWT for the session cookie."""
    return _encode(
        {"sub": sub},
        audience=SESSION_AUDIENCE,
        ttl=timedelta(minutes=SESSION_TTL_MIN),
    )


def decode_session_token(token: str) -> dict:
    """Verify a session JWT.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return _decode(token, audience=SESSION_AUDIENCE, require=["sub"])


# ---------------------------------------------------------------------------
# Flash tokens
# ---------------------------------------------------------------------------


def create_flash_token(data: dict) -> str:
    """Sign flash data (JSON-serializable) under the "flash" claim."""
    return _encode(
        {"flash": data},
        audience=FLASH_AUDIENCE,
        ttl=timedelta(seconds=FLASH_TTL_SEC),
    )


def decode_flash_token(token: str) -> dict:
    """Return the flash payload.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return _decode(token, audience=FLASH_AUDIENCE, require=["flash"])["flash"]
