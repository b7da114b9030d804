"""Pydantic schemas for invitations."""

from __future__ import annotations

from datetime import datetime

from pydantic import field_validator

from app.core.roles import Role
from app.schemas.common import CamelModel
from app.schemas.user import (check_password_strength, normalise_email,
                              require_name)


class InviteRequest(CamelModel):
    email: str
    role: Role

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)


class InvitationCreated(CamelModel):
    invitation_id: int
    email: str
    role: Role
    token: str
    expires_at: datetime


class AcceptInvitationRequest(CamelModel):
    token: str
    password: str
    first_name: str
    last_name: str

    @field_validator("token")
    @classmethod
    def _token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Invitation token is required")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str) -> str:
        return require_name(v)


class InvitationRead(CamelModel):
    id: int
    email: str
    role: Role
    is_accepted: bool
    is_expired: bool = False
    expires_at: datetime
    created_at: datetime | None = None
