"""
Auth orchestrator — registration, login, OTP verification and resend.

User states are derived from the row, not stored as an enum:

    unregistered -> pending verification (is_active=False)
                 -> active (is_active=True)
                 -> deactivated (is_active=False, set by an admin)

A failed OTP dispatch never fails the operation that triggered it:
the account exists and a resend is always possible.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (AccountInactiveError, ConflictError,
                                 InvalidCredentialsError, InvalidOtpError,
                                 NotFoundError)
from app.core.otp import generate_otp, otp_matches
from app.core.roles import Role
from app.core.security import (create_access_token, get_password_hash,
                               verify_password)
from app.models.user import User
from app.repositories.base import utcnow
from app.repositories.otp_tokens import OtpTokenRepository
from app.repositories.users import UserRepository
from app.services.mailer import EmailSender

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, mailer: EmailSender) -> None:
        self.db = db
        self.mailer = mailer
        self.users = UserRepository(db)
        self.otps = OtpTokenRepository(db)

    async def _dispatch_otp(self, user: User, code: str) -> bool:
        sent = await self.mailer.send_otp_email(user.email, code, user.first_name)
        if not sent:
            logger.warning("OTP dispatch failed for user %s; resend is available", user.id)
        return sent

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role,
    ) -> tuple[User, bool]:
        """Create an inactive account and send its first OTP.

        Returns the user and whether the OTP email went out.
        """
        if await self.users.email_exists(email):
            raise ConflictError("User already exists with this email")

        user = self.users.add(
            User(
                email=email,
                hashed_password=get_password_hash(password),
                first_name=first_name,
                last_name=last_name,
                role=role.value,
                is_active=False,
            )
        )
        code = generate_otp()
        try:
            await self.db.flush()
            await self.otps.issue(user.id, code)
            await self.db.commit()
        except IntegrityError as exc:
            # lost a concurrent registration race on the unique email
            await self.db.rollback()
            raise ConflictError("User already exists with this email") from exc
        await self.db.refresh(user)
        logger.info("Registered user %s (%s)", user.id, user.role)

        sent = await self._dispatch_otp(user, code)
        return user, sent

    async def login(self, email: str, password: str) -> tuple[str, User]:
        user = await self.users.get_by_email(email)
        if user is None:
            verify_password(password, None)
            raise InvalidCredentialsError()
        if not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountInactiveError("Account is inactive. Please verify your email first")

        logger.info("User %s logged in", user.id)
        return create_access_token(user.id), user

    async def verify_otp(self, email: str, code: str) -> tuple[str, User]:
        """Consume the user's active OTP and activate the account."""
        user = await self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        if user.email_verified_at is not None and not user.is_active:
            # deactivated by an admin; a code must not re-enable it
            raise AccountInactiveError()

        token = await self.otps.get_active(user.id)
        if token is None:
            raise InvalidOtpError()
        if not otp_matches(code, token.code_hash):
            await self.otps.record_failed_attempt(token.id, settings.OTP_MAX_ATTEMPTS)
            await self.db.commit()
            raise InvalidOtpError()

        if not await self.otps.consume(token.id):
            # a concurrent verification already used this code
            await self.db.rollback()
            raise InvalidOtpError()

        if user.email_verified_at is None:
            user.email_verified_at = utcnow()
            user.is_active = True
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Email verified for user %s", user.id)
        return create_access_token(user.id), user

    async def resend_otp(self, email: str) -> None:
        user = await self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        code = generate_otp()
        await self.otps.issue(user.id, code)
        await self.db.commit()
        await self._dispatch_otp(user, code)
