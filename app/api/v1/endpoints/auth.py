"""
Auth endpoints — registration, login and email verification by OTP.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.v1.deps import get_auth_service
from app.core.limiter import limiter
from app.schemas.auth import (AuthResponse, LoginRequest, RegisterRequest,
                              ResendOtpRequest, VerifyOtpRequest)
from app.schemas.common import MessageResponse
from app.schemas.user import UserRead
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an inactive account and email a verification code."""
    user, sent = await service.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    if sent:
        message = "User registered successfully. Please check your email for the OTP."
    else:
        message = (
            "User registered successfully, but the verification email could not "
            "be sent. Please request a new OTP."
        )
    return AuthResponse(message=message, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Exchange email + password for a bearer token."""
    token, user = await service.login(body.email, body.password)
    return AuthResponse(
        message="Login successful",
        token=token,
        user=UserRead.model_validate(user),
    )


@router.post("/verify-otp", response_model=AuthResponse)
@limiter.limit("5/minute")
async def verify_otp(
    request: Request,
    body: VerifyOtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Verify the emailed code, activate the account and sign in."""
    token, user = await service.verify_otp(body.email, body.otp)
    return AuthResponse(
        message="Email verified successfully",
        token=token,
        user=UserRead.model_validate(user),
    )


@router.post("/resend-otp", response_model=MessageResponse)
@limiter.limit("3/minute")
async def resend_otp(
    request: Request,
    body: ResendOtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Issue a fresh code; earlier codes stop working."""
    await service.resend_otp(body.email)
    return MessageResponse(message="A new OTP has been sent to your email")
