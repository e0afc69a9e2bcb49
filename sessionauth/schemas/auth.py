"""Pydantic schemas for authentication API."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request for registration.

    Shape rules (name length, email format, password length) are enforced
    by the service so they surface as 400 with a specific message.
    """

    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """Request for login."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    password: str


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    is_verified: bool


class LoginResponse(BaseModel):
    """Response with the bearer token (also set as a cookie)."""

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
