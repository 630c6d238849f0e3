"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request

from flowauth.dependencies import get_credential_service, get_current_user
from flowauth.models.user import User
from flowauth.rate_limit import limiter
from flowauth.schemas.auth import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    UserProfile,
)
from flowauth.schemas.common import ApiResponse
from flowauth.services.credentials import CredentialService

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=ApiResponse[UserProfile], status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[UserProfile]:
    """Create an account and send a verification email."""
    user = service.register(body.email, body.password, body.first_name, body.last_name)
    return ApiResponse[UserProfile](
        message="Registration successful. Please check your email to verify your account.",
        data=UserProfile.model_validate(user),
    )


@router.post("/login", response_model=ApiResponse[SessionResponse])
@limiter.limit("10/minute")
def login(
    request: Request,
    body: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[SessionResponse]:
    """Authenticate and receive a session token."""
    result = service.login(body.email, body.password)
    profile = UserProfile.model_validate(result.user)
    return ApiResponse[SessionResponse](
        message="Login successful",
        data=SessionResponse(**profile.model_dump(), token=result.token),
    )


@router.get("/me", response_model=ApiResponse[UserProfile])
def me(user: User = Depends(get_current_user)) -> ApiResponse[UserProfile]:
    """Return the profile behind the bearer token."""
    return ApiResponse[UserProfile](message="User retrieved successfully", data=UserProfile.model_validate(user))


@router.get("/verify-email", response_model=ApiResponse[UserProfile])
@limiter.limit("10/minute")
def verify_email(
    request: Request,
    token: str | None = None,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[UserProfile]:
    """Confirm ownership of an email address with the emailed token."""
    user = service.verify_email(token or "")
    return ApiResponse[UserProfile](
        message="Email verified successfully. You can now log in.",
        data=UserProfile.model_validate(user),
    )


@router.post("/resend-verification", response_model=ApiResponse[None])
@limiter.limit("3/minute")
def resend_verification(
    request: Request,
    body: EmailRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[None]:
    """Send a new verification link."""
    return ApiResponse[None](message=service.resend_verification(body.email))


@router.post("/forgot-password", response_model=ApiResponse[None])
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: EmailRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[None]:
    """Email a password reset link if the account exists."""
    return ApiResponse[None](message=service.forgot_password(body.email))


@router.post("/reset-password", response_model=ApiResponse[None])
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ApiResponse[None]:
    """Set a new password using the emailed reset token."""
    service.reset_password(body.token, body.new_password)
    return ApiResponse[None](message="Password has been reset successfully. You can now log in.")
