"""
OtpToken model — short-lived proof of email ownership.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from app.db.base import Base


class OtpToken(Base):
    __tablename__ = "otp_tokens"
    __table_args__ = (Index("ix_otp_tokens_user_used", "user_id", "is_used"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    code_hash: str = Column(String(64), nullable=False)  # type: ignore[assignment]  # HMAC-SHA256 hex
    is_used: bool = Column(Boolean, default=False, server_default="false", nullable=False)  # type: ignore[assignment]
    attempts: int = Column(Integer, default=0, server_default="0", nullable=False)  # type: ignore[assignment]
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
