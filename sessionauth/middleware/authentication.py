"""Request authentication against server-side sessions.

Every protected request goes through ``require_auth``:

1. Take the token from ``Authorization: Bearer <token>``, else from the
   token cookie. Neither -> 401 "Authentication required".
2. Verify signature and expiry. Failure -> 401, token cookie cleared.
3. Find the session row by (jti, user id). Missing -> 401, cookie cleared.
   Deleting the row is how logout, revocation and password reset end a
   token that is still cryptographically valid.
4. Bump ``last_active`` and attach an ``AuthContext`` to ``request.state``.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.api.deps import get_token_codec
from sessionauth.core import get_db, settings
from sessionauth.services.errors import (
    AuthError,
    AuthRequiredError,
    SessionRevokedError,
)
from sessionauth.services.sessions import SessionService
from sessionauth.services.tokens import TokenCodec

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Identity of an authenticated request."""

    user_id: UUID
    jti: str
    session_id: UUID


def extract_token(request: Request) -> str | None:
    """Bearer header wins over the cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX) :].strip()
        if token:
            return token
    return request.cookies.get(settings.cookie_name) or None


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> AuthContext:
    """Dependency that authenticates the request or raises an AuthError."""
    token = extract_token(request)
    if token is None:
        raise AuthRequiredError()

    # Raises InvalidTokenError
    claims = token_codec.verify(token)

    sessions = SessionService(db)
    ses = await sessions.get_active(claims.user_id, claims.jti)
    if ses is None:
        logger.info(
            f"Rejected token for revoked session (user {claims.user_id})",
            extra={"user_id": claims.user_id},
        )
        raise SessionRevokedError()

    await sessions.touch(ses)

    context = AuthContext(user_id=claims.user_id, jti=claims.jti, session_id=ses.id)
    request.state.auth = context
    return context


def set_token_cookie(response: Response, token: str, max_age: int) -> None:
    """Store the bearer token in an http-only, cross-site cookie."""
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none",
    )


def clear_token_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none",
    )


def auth_error_response(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError, dropping the token cookie for token failures."""
    if exc.status_code == 401:
        logger.debug(f"Unauthenticated {request.method} {request.url.path}: {exc.message}")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )
    if exc.clears_cookie:
        clear_token_cookie(response)
    return response
