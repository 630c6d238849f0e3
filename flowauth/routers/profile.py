"""Profile endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, Request

from flowauth.dependencies import get_credential_service, get_current_user
from flowauth.models.user import User
from flowauth.rate_limit import limiter
from flowauth.schemas.auth import ChangePasswordRequest, UpdateProfileRequest, UserProfile
from flowauth.schemas.common import ApiResponse
from flowauth.services.credentials import CredentialService

router = APIRouter(prefix="/api/v1/profile", tags=["Profile"])


@router.get("", response_model=ApiResponse[UserProfile])
def get_profile(user: User = Depends(get_current_user)) -> ApiResponse[UserProfile]:
    return ApiResponse[UserProfile](
        message="User profile retrieved successfully",
        data=UserProfile.model_validate(user),
    )


@router.put("", response_model=ApiResponse[UserProfile])
def update_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[UserProfile]:
    updated = service.update_profile(user, first_name=body.first_name, last_name=body.last_name)
    return ApiResponse[UserProfile](
        message="User profile updated successfully",
        data=UserProfile.model_validate(updated),
    )


@router.put("/change-password", response_model=ApiResponse[None])
@limiter.limit("5/minute")
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[None]:
    """Replace the password after confirming the current one."""
    service.change_password(user, body.current_password, body.new_password)
    return ApiResponse[None](message="Password has been changed successfully")
