"""
User management & invitation endpoints.

- GET /users/profile requires any authenticated user.
- Listing, reading, updating and inviting require admin or manager.
- DELETE requires admin.
- POST /users/accept-invitation is public (the token is the credential).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.v1.deps import (get_current_user, get_user_service,
                             require_admin, require_admin_or_manager)
from app.core.limiter import limiter
from app.models.invitation import Invitation
from app.models.user import User
from app.repositories.base import as_utc, utcnow
from app.schemas.auth import AuthResponse
from app.schemas.common import ApiResponse, MessageResponse
from app.schemas.invitation import (AcceptInvitationRequest,
                                    InvitationCreated, InvitationRead,
                                    InviteRequest)
from app.schemas.user import CreatorRead, UserDetail, UserRead, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _detail(user: User, creator: User | None) -> UserDetail:
    detail = UserDetail.model_validate(user)
    if creator is not None:
        detail.created_by = CreatorRead.model_validate(creator)
    return detail


def _invitation_read(invitation: Invitation) -> InvitationRead:
    read = InvitationRead.model_validate(invitation)
    read.is_expired = not invitation.is_accepted and as_utc(invitation.expires_at) <= utcnow()
    return read


# Static paths are declared before /{user_id} so they are not shadowed.
@router.get("/profile", response_model=ApiResponse[UserRead])
async def read_profile(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserRead]:
    """Return profile of the currently authenticated user."""
    return ApiResponse[UserRead](
        message="Profile retrieved successfully",
        data=UserRead.model_validate(current_user),
    )


@router.get("/invitations/sent", response_model=ApiResponse[list[InvitationRead]])
async def list_sent_invitations(
    current_user: User = Depends(require_admin_or_manager),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[list[InvitationRead]]:
    invitations = await service.list_sent_invitations(current_user)
    return ApiResponse[list[InvitationRead]](
        message="Invitations retrieved successfully",
        data=[_invitation_read(inv) for inv in invitations],
    )


@router.post("/invite", response_model=ApiResponse[InvitationCreated], status_code=201)
async def invite_user(
    body: InviteRequest,
    current_user: User = Depends(require_admin_or_manager),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[InvitationCreated]:
    """Create a single-use invitation for an email address."""
    invitation = await service.invite_user(body.email, body.role, current_user)
    return ApiResponse[InvitationCreated](
        message="Invitation sent successfully",
        data=InvitationCreated(
            invitation_id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            token=invitation.token,
            expires_at=invitation.expires_at,
        ),
    )


@router.post("/accept-invitation", response_model=AuthResponse)
@limiter.limit("10/minute")
async def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    service: UserService = Depends(get_user_service),
) -> AuthResponse:
    token, user = await service.accept_invitation(
        token=body.token,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return AuthResponse(
        message="Account created successfully",
        token=token,
        user=UserRead.model_validate(user),
    )


@router.get("", response_model=ApiResponse[list[UserDetail]])
async def list_users(
    current_user: User = Depends(require_admin_or_manager),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[list[UserDetail]]:
    """Every user except the caller, newest first."""
    rows = await service.list_users(current_user)
    return ApiResponse[list[UserDetail]](
        message="Users retrieved successfully",
        data=[_detail(user, creator) for user, creator in rows],
    )


@router.get("/{user_id}", response_model=ApiResponse[UserDetail])
async def get_user(
    user_id: int,
    _user: User = Depends(require_admin_or_manager),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserDetail]:
    user, creator = await service.get_user(user_id)
    return ApiResponse[UserDetail](
        message="User retrieved successfully",
        data=_detail(user, creator),
    )


@router.put("/{user_id}", response_model=ApiResponse[UserRead])
async def update_user(
    user_id: int,
    body: UserUpdate,
    _user: User = Depends(require_admin_or_manager),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserRead]:
    """Partial update: fields left out of the body are not touched."""
    user = await service.update_user(user_id, body.model_dump(exclude_unset=True))
    return ApiResponse[UserRead](
        message="User updated successfully",
        data=UserRead.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.delete_user(user_id, current_user)
    return MessageResponse(message="User deleted successfully")
