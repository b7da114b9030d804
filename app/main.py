"""
Gatekeeper — Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `repositories/`, `models/`, and
`core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.limiter import limiter
from app.core.roles import Role
from app.core.security import ensure_signing_secret, get_password_hash
from app.db.base import Base
from app.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from app.models.invitation import Invitation  # noqa: F401
from app.models.otp_token import OtpToken  # noqa: F401
from app.models.user import User
from app.repositories.base import utcnow
from app.repositories.users import UserRepository

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_first_admin() -> None:
    """Create the configured admin account if it does not exist yet."""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return
    async with async_session_factory() as session:
        users = UserRepository(session)
        if await users.email_exists(settings.FIRST_ADMIN_EMAIL):
            return
        users.add(
            User(
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                first_name="System",
                last_name="Administrator",
                role=Role.ADMIN.value,
                is_active=True,
                email_verified_at=utcnow(),
            )
        )
        await session.commit()
        logger.info(
            "Default admin created: %s (password: <redacted>)",
            settings.FIRST_ADMIN_EMAIL,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_first_admin()

    logger.info("🚀 %s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    # A missing signing secret is fatal: refuse to build the app at all.
    ensure_signing_secret()

    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Identity & access-control backend",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Rate limiter (slowapi looks it up on app.state)
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
