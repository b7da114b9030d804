"""
FastAPI dependencies — database session, services and the access guard.

The guard re-reads the user on every request, so deactivating an
account takes effect before its token expires.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (AccountInactiveError,
                                 AuthenticationRequiredError,
                                 InsufficientPermissionsError)
from app.core.roles import ADMIN_ONLY, ADMIN_OR_MANAGER, Role, role_allowed
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.models.user import User
from app.repositories.users import UserRepository
from app.services.auth_service import AuthService
from app.services.mailer import EmailSender, get_email_sender
from app.services.user_service import UserService

# auto_error=False so a missing header surfaces as our own 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Services ────────────────────────────────────────────────────────
def get_auth_service(
    db: AsyncSession = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, mailer)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a live, active user."""
    if not token:
        raise AuthenticationRequiredError()

    # InvalidTokenError (403) propagates for any verification failure
    user_id = decode_access_token(token)

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise AccountInactiveError()
    return user


def require_roles(allowed: frozenset[Role]) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits only users whose role is in *allowed*."""

    async def _guard(current_user: User = Depends(get_current_user)) -> User:
        if not role_allowed(current_user.role, allowed):
            raise InsufficientPermissionsError()
        return current_user

    return _guard


require_admin = require_roles(ADMIN_ONLY)
require_admin_or_manager = require_roles(ADMIN_OR_MANAGER)
