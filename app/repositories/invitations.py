"""
Invitation store — pending enrollment offers.
"""

from __future__ import annotations

import secrets
from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.invitation import Invitation
from app.repositories.base import read_with_retry, utcnow
from app.repositories.users import normalise_email


def new_invitation_token() -> str:
    return secrets.token_urlsafe(32)


class InvitationRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def lock_email(self, email: str) -> None:
        """Serialise invitation writes for *email* until the transaction ends.

        Uses a PostgreSQL advisory lock; a no-op on other backends.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(normalise_email(email))))
        )

    async def get_active_for_email(self, email: str) -> Invitation | None:
        result = await self.db.execute(
            select(Invitation)
            .where(
                Invitation.email == normalise_email(email),
                Invitation.is_accepted.is_(False),
                Invitation.expires_at > utcnow(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_pending_by_token(self, token: str) -> Invitation | None:
        """Invitation for *token* that is neither accepted nor expired."""
        result = await self.db.execute(
            select(Invitation).where(
                Invitation.token == token,
                Invitation.is_accepted.is_(False),
                Invitation.expires_at > utcnow(),
            )
        )
        return result.scalar_one_or_none()

    async def create(self, email: str, role: str, invited_by_id: int) -> Invitation:
        now = utcnow()
        invitation = Invitation(
            email=normalise_email(email),
            role=role,
            invited_by_id=invited_by_id,
            token=new_invitation_token(),
            is_accepted=False,
            created_at=now,
            expires_at=now + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        )
        self.db.add(invitation)
        await self.db.flush()
        return invitation

    async def mark_accepted(self, invitation_id: int) -> bool:
        """Flip ``is_accepted`` only if still pending; True if this call won."""
        result = await self.db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.is_accepted.is_(False))
            .values(is_accepted=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_sent_by(self, inviter_id: int) -> list[Invitation]:
        result = await read_with_retry(
            self.db,
            select(Invitation)
            .where(Invitation.invited_by_id == inviter_id)
            .order_by(Invitation.created_at.desc(), Invitation.id.desc()),
        )
        return list(result.scalars().all())
