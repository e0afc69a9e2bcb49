"""Pydantic schemas for session management API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SessionResponse(BaseModel):
    """One device session."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    device: str
    browser: str
    os: str
    ip: str
    last_active: datetime
    created_at: datetime
    is_current: bool


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
