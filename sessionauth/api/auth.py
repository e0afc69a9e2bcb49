"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from sessionauth.api.deps import get_auth_service
from sessionauth.core.request_utils import get_client_ip
from sessionauth.middleware.authentication import AuthContext, require_auth, set_token_cookie
from sessionauth.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from sessionauth.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Create an account and send the verification email.

    Returns 400 on invalid input and 409 if the email is taken.
    """
    await auth_service.register(
        name=request.name,
        email=request.email,
        password=request.password,
    )
    return MessageResponse(
        message="Registration successful. Please check your email to verify your account."
    )


@router.get("/verify-email/{token}", response_model=MessageResponse)
async def verify_email(
    token: str,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate and open a session for the calling device.

    The token is returned in the body and set as an http-only cookie.
    Logging in again from the same device replaces that device's session.
    """
    result = await auth_service.login(
        email=request.email,
        password=request.password,
        user_agent=http_request.headers.get("user-agent"),
        ip=get_client_ip(http_request),
    )
    max_age = int(auth_service.token_codec.expires_in.total_seconds())
    set_token_cookie(response, result.token, max_age)

    return LoginResponse(
        token=result.token,
        expires_in=max_age,
        user=UserResponse.model_validate(result.user),
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    auth: AuthContext = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    """Get the current user's information."""
    user = await auth_service.get_user(auth.user_id)
    return MeResponse(user=UserResponse.model_validate(user))


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Send a reset link if the account exists.

    The response is identical for known and unknown emails.
    """
    message = await auth_service.request_password_reset(request.email)
    return MessageResponse(message=message)


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Set a new password and sign out every device."""
    await auth_service.reset_password(token, request.password)
    return MessageResponse(
        message="Password reset successful. Please log in with your new password."
    )
