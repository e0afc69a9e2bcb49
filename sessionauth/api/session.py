"""Session management API endpoints (logout and device list)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from sessionauth.api.deps import get_session_service
from sessionauth.middleware.authentication import AuthContext, clear_token_cookie, require_auth
from sessionauth.schemas.auth import MessageResponse
from sessionauth.schemas.session import SessionListResponse, SessionResponse
from sessionauth.services.sessions import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    auth: AuthContext = Depends(require_auth),
    session_service: SessionService = Depends(get_session_service),
) -> MessageResponse:
    """End the current device's session."""
    await session_service.logout(auth.user_id, auth.jti)
    clear_token_cookie(response)
    logger.info(
        f"User {auth.user_id} logged out session {auth.session_id}",
        extra={"user_id": auth.user_id, "session_id": auth.session_id},
    )
    return MessageResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    response: Response,
    auth: AuthContext = Depends(require_auth),
    session_service: SessionService = Depends(get_session_service),
) -> MessageResponse:
    """End every session of the current user, including this one."""
    await session_service.logout_all(auth.user_id)
    clear_token_cookie(response)
    return MessageResponse(message="Logged out from all devices")


@router.get("/devices", response_model=SessionListResponse)
async def list_devices(
    auth: AuthContext = Depends(require_auth),
    session_service: SessionService = Depends(get_session_service),
) -> SessionListResponse:
    """List active sessions, most recent first, marking the caller's own."""
    views = await session_service.list_for_user(auth.user_id, auth.session_id)
    return SessionListResponse(sessions=[SessionResponse.model_validate(v) for v in views])


@router.delete("/{session_id}", response_model=MessageResponse)
async def revoke_session(
    session_id: UUID,
    auth: AuthContext = Depends(require_auth),
    session_service: SessionService = Depends(get_session_service),
) -> MessageResponse:
    """Sign out another device.

    The current session cannot be revoked here; use /session/logout.
    """
    await session_service.revoke(auth.user_id, session_id, auth.session_id)
    return MessageResponse(message="Session revoked successfully")
