"""
User maintenance and the invitation lifecycle.

Accepting an invitation inserts the user and flips the invitation in a
single transaction: both commit or neither does.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (ConflictError, ForbiddenSelfActionError,
                                 InvalidInvitationError, NotFoundError)
from app.core.roles import Role
from app.core.security import create_access_token, get_password_hash
from app.models.invitation import Invitation
from app.models.user import User
from app.repositories.base import utcnow
from app.repositories.invitations import InvitationRepository
from app.repositories.users import UserRepository

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"first_name", "last_name", "role", "is_active"})


class UserService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.users = UserRepository(db)
        self.invitations = InvitationRepository(db)

    # ── Maintenance ────────────────────────────────────────────────
    async def list_users(self, current_user: User) -> list[tuple[User, User | None]]:
        return await self.users.list_with_creator(exclude_id=current_user.id)

    async def get_user(self, user_id: int) -> tuple[User, User | None]:
        found = await self.users.get_with_creator(user_id)
        if found is None:
            raise NotFoundError("User not found")
        return found

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> User:
        """Apply only the supplied fields; everything else is left untouched."""
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        for field, value in changes.items():
            if field not in _UPDATABLE_FIELDS:
                continue
            if isinstance(value, Role):
                value = value.value
            setattr(user, field, value)

        if changes.get("is_active") is True and user.email_verified_at is None:
            # an administrative activation counts as verification
            user.email_verified_at = utcnow()

        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User %s updated: %s", user.id, sorted(changes))
        return user

    async def delete_user(self, user_id: int, current_user: User) -> None:
        if user_id == current_user.id:
            raise ForbiddenSelfActionError()

        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        await self.users.delete(user)
        await self.db.commit()
        logger.info("User %s deleted by %s", user_id, current_user.id)

    # ── Invitations ────────────────────────────────────────────────
    async def invite_user(self, email: str, role: Role, inviter: User) -> Invitation:
        # held until commit, so concurrent invites for one address queue here
        await self.invitations.lock_email(email)
        if await self.users.email_exists(email):
            raise ConflictError("User already exists with this email")
        if await self.invitations.get_active_for_email(email) is not None:
            raise ConflictError("Invitation already sent to this email")

        invitation = await self.invitations.create(email, role.value, inviter.id)
        await self.db.commit()
        logger.info("Invitation %s created by user %s (%s)", invitation.id, inviter.id, role.value)
        return invitation

    async def accept_invitation(
        self,
        token: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> tuple[str, User]:
        invitation = await self.invitations.get_pending_by_token(token)
        if invitation is None:
            raise InvalidInvitationError()
        if await self.users.email_exists(invitation.email):
            raise ConflictError("User already exists with this email")

        user = self.users.add(
            User(
                email=invitation.email,
                hashed_password=get_password_hash(password),
                first_name=first_name,
                last_name=last_name,
                role=invitation.role,
                is_active=True,
                email_verified_at=utcnow(),
                created_by_id=invitation.invited_by_id,
            )
        )
        try:
            await self.db.flush()
            if not await self.invitations.mark_accepted(invitation.id):
                # accepted concurrently between lookup and update
                raise InvalidInvitationError()
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("User already exists with this email") from exc
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(user)
        logger.info("Invitation %s accepted; user %s created", invitation.id, user.id)
        return create_access_token(user.id), user

    async def list_sent_invitations(self, inviter: User) -> list[Invitation]:
        return await self.invitations.list_sent_by(inviter.id)
