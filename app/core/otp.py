"""
One-time passcode generation and at-rest hashing.

Codes are six digits, valid for a short window, and stored only as
HMAC-SHA256 digests keyed by the signing secret.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import timedelta

from app.core.config import settings
from app.core.security import get_signing_secret

OTP_LENGTH = 6
_OTP_MIN = 10 ** (OTP_LENGTH - 1)
_OTP_SPAN = 9 * _OTP_MIN


def generate_otp() -> str:
    """Return a code sampled uniformly from 100000-999999."""
    return str(_OTP_MIN + secrets.randbelow(_OTP_SPAN))


def otp_expiry_window() -> timedelta:
    return timedelta(minutes=settings.OTP_EXPIRE_MINUTES)


def hash_otp(code: str) -> str:
    return hmac.new(
        get_signing_secret().encode("utf-8"),
        code.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def otp_matches(code: str, code_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(code.strip()), code_hash)
