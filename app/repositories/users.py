"""
Account store — queries over the ``users`` table.
"""

from __future__ import annotations

from sqlalchemy import delete as sa_delete
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.invitation import Invitation
from app.models.otp_token import OtpToken
from app.models.user import User
from app.repositories.base import read_with_retry


def normalise_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        result = await read_with_retry(self.db, select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalise_email(email))
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.email == normalise_email(email))
        )
        return result.first() is not None

    async def list_with_creator(self, exclude_id: int) -> list[tuple[User, User | None]]:
        """All users except *exclude_id*, newest first, paired with their creator."""
        creator = aliased(User)
        result = await read_with_retry(
            self.db,
            select(User, creator)
            .outerjoin(creator, User.created_by_id == creator.id)
            .where(User.id != exclude_id)
            .order_by(User.created_at.desc(), User.id.desc()),
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_with_creator(self, user_id: int) -> tuple[User, User | None] | None:
        creator = aliased(User)
        result = await read_with_retry(
            self.db,
            select(User, creator)
            .outerjoin(creator, User.created_by_id == creator.id)
            .where(User.id == user_id),
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    def add(self, user: User) -> User:
        user.email = normalise_email(user.email)
        self.db.add(user)
        return user

    async def delete(self, user: User) -> None:
        """Remove *user* with its OTPs and sent invitations; detach users it created."""
        await self.db.execute(sa_delete(OtpToken).where(OtpToken.user_id == user.id))
        await self.db.execute(sa_delete(Invitation).where(Invitation.invited_by_id == user.id))
        await self.db.execute(
            update(User)
            .where(User.created_by_id == user.id)
            .values(created_by_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(user)
