"""FastAPI dependency providers.

This is the only layer that reads global settings; services receive their
configuration through constructors.
"""

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.core import get_db, settings
from sessionauth.services.auth import AuthService
from sessionauth.services.email import EmailSender
from sessionauth.services.sessions import SessionService
from sessionauth.services.tokens import TokenCodec


@lru_cache
def get_token_codec() -> TokenCodec:
    """Dependency to get the process-wide token codec."""
    return TokenCodec(
        secret_key=settings.effective_jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.jwt_expire_days),
    )


@lru_cache
def get_email_sender() -> EmailSender:
    """Dependency to get the email collaborator."""
    return EmailSender(
        api_key=settings.brevo_api_key,
        sender_address=settings.email_sender_address,
        sender_name=settings.email_sender_name,
        frontend_url=settings.frontend_url,
        api_url=settings.brevo_api_url,
        timeout=settings.http_timeout,
    )


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_codec: TokenCodec = Depends(get_token_codec),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(
        db,
        token_codec=token_codec,
        email_sender=email_sender,
        verification_ttl=timedelta(hours=settings.verification_token_expire_hours),
        reset_ttl=timedelta(minutes=settings.reset_token_expire_minutes),
    )


def get_session_service(db: AsyncSession = Depends(get_db)) -> SessionService:
    """Dependency to get session service."""
    return SessionService(db)
