"""
JWT token creation / verification and password hashing (bcrypt).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import ConfigurationError, InvalidTokenError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM

# Compared against when the account does not exist, so a miss costs
# the same bcrypt work as a wrong password.
_DUMMY_HASH = pwd_context.hash("dummy-password-for-timing")


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str | None) -> bool:
    """Check *plain* against *hashed*; malformed or missing hashes return False."""
    try:
        if not hashed:
            pwd_context.verify(plain, _DUMMY_HASH)
            return False
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # passlib rejects oversized or non-string secrets outright
        return False


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
def get_signing_secret() -> str:
    if not settings.SECRET_KEY:
        raise ConfigurationError("SECRET_KEY is not configured")
    return settings.SECRET_KEY


def ensure_signing_secret() -> None:
    """Fail fast at startup when no signing secret is configured."""
    get_signing_secret()


def create_access_token(
    subject: str | Any,
    expires_delta: timedelta | None = None,
) -> str:
    secret = get_signing_secret()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {"exp": expire, "sub": str(subject), "type": "access"},
        secret,
        algorithm=_ALGORITHM,
    )


def decode_access_token(token: str) -> int:
    """Return the subject user id of a valid *access* token.

    Raises ``InvalidTokenError`` for a bad signature, a malformed or
    expired token, or a payload that does not name a user.
    """
    try:
        payload = jwt.decode(token, get_signing_secret(), algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc
    if payload.get("type") != "access":
        raise InvalidTokenError()
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError() from exc
