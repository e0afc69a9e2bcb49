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
from sessionauth.schemas.session import SessionListResponse, SessionResponse

__all__ = [
    "ForgotPasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionListResponse",
    "SessionResponse",
    "UserResponse",
]
