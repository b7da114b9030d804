"""Pydantic schemas for User CRUD and auth payloads."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import field_validator, model_validator

from app.core.roles import Role
from app.schemas.common import CamelModel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


def normalise_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v) or len(v) > 320:
        raise ValueError("Invalid email format")
    return v


def check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(v.encode("utf-8")) > 72:
        # bcrypt only looks at the first 72 bytes
        raise ValueError("Password must be at most 72 bytes long")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    if not _SPECIAL_RE.search(v):
        raise ValueError("Password must contain at least one special character")
    return v


def require_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 100:
        raise ValueError("Name must be at most 100 characters")
    return v


class CreatorRead(CamelModel):
    first_name: str
    last_name: str


class UserRead(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserDetail(UserRead):
    created_by: CreatorRead | None = None


class UserUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    role: Role | None = None
    is_active: bool | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str | None) -> str | None:
        return require_name(v) if v is not None else v

    @model_validator(mode="after")
    def _no_nulls(self) -> UserUpdate:
        # omitted fields are left alone; explicit nulls are not a value
        for name in sorted(self.model_fields_set):
            if getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} must not be null")
        return self
