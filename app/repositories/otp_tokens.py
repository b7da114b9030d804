"""
OTP store — issuance, lookup and single-use consumption.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.otp import hash_otp, otp_expiry_window
from app.models.otp_token import OtpToken
from app.repositories.base import utcnow


class OtpTokenRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def invalidate_active(self, user_id: int) -> int:
        """Mark every unused, unexpired token of *user_id* as used."""
        result = await self.db.execute(
            update(OtpToken)
            .where(
                OtpToken.user_id == user_id,
                OtpToken.is_used.is_(False),
                OtpToken.expires_at > utcnow(),
            )
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def issue(self, user_id: int, code: str) -> OtpToken:
        """Invalidate prior tokens and stage a new one for *code* (caller commits)."""
        await self.invalidate_active(user_id)
        now = utcnow()
        token = OtpToken(
            user_id=user_id,
            code_hash=hash_otp(code),
            is_used=False,
            attempts=0,
            created_at=now,
            expires_at=now + otp_expiry_window(),
        )
        self.db.add(token)
        await self.db.flush()
        return token

    async def get_active(self, user_id: int) -> OtpToken | None:
        """Most recently created unused, unexpired token for *user_id*."""
        result = await self.db.execute(
            select(OtpToken)
            .where(
                OtpToken.user_id == user_id,
                OtpToken.is_used.is_(False),
                OtpToken.expires_at > utcnow(),
            )
            .order_by(OtpToken.created_at.desc(), OtpToken.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def consume(self, token_id: int) -> bool:
        """Flip ``is_used`` only if still unused; True if this call won."""
        result = await self.db.execute(
            update(OtpToken)
            .where(OtpToken.id == token_id, OtpToken.is_used.is_(False))
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def record_failed_attempt(self, token_id: int, max_attempts: int) -> None:
        """Count a wrong code; burn the token once *max_attempts* is reached."""
        await self.db.execute(
            update(OtpToken)
            .where(OtpToken.id == token_id)
            .values(attempts=OtpToken.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            update(OtpToken)
            .where(OtpToken.id == token_id, OtpToken.attempts >= max_attempts)
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
