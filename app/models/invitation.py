"""
Invitation model — pending enrollment offer for an email address.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from app.db.base import Base


class Invitation(Base):
    __tablename__ = "invitations"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False, index=True)  # type: ignore[assignment]
    role: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    invited_by_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    is_accepted: bool = Column(Boolean, default=False, server_default="false", nullable=False)  # type: ignore[assignment]
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
