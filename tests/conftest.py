"""
Shared test fixtures for the Gatekeeper test suite.

Async throughout: aiosqlite in-memory database + httpx AsyncClient.
"""

import os
import sys
from dataclasses import dataclass, field
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ.pop("FIRST_ADMIN_EMAIL", None)
os.environ.pop("SMTP_HOST", None)

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.core.roles import Role
from app.core.security import create_access_token, get_password_hash
from app.db.base import Base
from app.main import app
from app.models.user import User
from app.repositories.base import utcnow
from app.services.mailer import get_email_sender

PASSWORD = "Str0ng!Pass"
# bcrypt at cost 12 is slow; hash the shared test password once
PASSWORD_HASH = get_password_hash(PASSWORD)


# ── Email capture ───────────────────────────────────────────────────
@dataclass
class SentOtp:
    to: str
    code: str
    display_name: str


@dataclass
class FakeMailer:
    """Stands in for the SMTP sender; records every OTP it is asked to send."""

    fail: bool = False
    sent: list[SentOtp] = field(default_factory=list)

    async def send_otp_email(self, to: str, code: str, display_name: str) -> bool:
        if self.fail:
            return False
        self.sent.append(SentOtp(to, code, display_name))
        return True

    def last_code_for(self, email: str) -> str:
        return [m.code for m in self.sent if m.to == email][-1]


# ── Database ────────────────────────────────────────────────────────
@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test, wired into the app."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer() -> FakeMailer:
    fake = FakeMailer()
    app.dependency_overrides[get_email_sender] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_email_sender, None)


@pytest.fixture
async def async_client(session_factory, mailer) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ── Users & tokens ──────────────────────────────────────────────────
@pytest.fixture
def make_user(db_session):
    """Factory that inserts a user directly into the store."""

    async def _make(
        email: str,
        role: Role = Role.DEVELOPER,
        is_active: bool = True,
        first_name: str = "Test",
        last_name: str = "User",
        created_by_id: int | None = None,
    ) -> User:
        user = User(
            email=email,
            hashed_password=PASSWORD_HASH,
            first_name=first_name,
            last_name=last_name,
            role=role.value,
            is_active=is_active,
            email_verified_at=utcnow() if is_active else None,
            created_by_id=created_by_id,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def fetch_user(session: AsyncSession, email: str) -> User | None:
    """Read a user as currently committed, bypassing stale identity-map state."""
    session.expire_all()
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()
