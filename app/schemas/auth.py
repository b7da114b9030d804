"""Pydantic schemas for register / login / OTP."""

from __future__ import annotations

import re

from pydantic import field_validator

from app.core.roles import Role
from app.schemas.common import CamelModel
from app.schemas.user import (UserRead, check_password_strength,
                              normalise_email, require_name)

_OTP_RE = re.compile(r"[0-9]{6}")


class RegisterRequest(CamelModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: Role

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str) -> str:
        return require_name(v)


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class VerifyOtpRequest(CamelModel):
    email: str
    otp: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("otp")
    @classmethod
    def _otp(cls, v: str) -> str:
        v = v.strip()
        if not _OTP_RE.fullmatch(v):
            raise ValueError("OTP must be a 6-digit code")
        return v


class ResendOtpRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str | None = None
    user: UserRead | None = None
