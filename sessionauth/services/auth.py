"""Credential store and login orchestration."""

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.models.user import User
from sessionauth.models.user_session import UserSession
from sessionauth.services.device import UserAgentParser, parse_user_agent
from sessionauth.services.email import EmailSender
from sessionauth.services.errors import (
    ConflictError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredError,
    NotFoundError,
    ValidationError,
)
from sessionauth.services.sessions import SessionService, is_unique_violation
from sessionauth.services.tokens import TokenCodec

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a reset link has been sent."

# Verified against when the email is unknown so both paths cost one hash check
_DUMMY_HASH = ph.hash(secrets.token_urlsafe(16))


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, InvalidHashError):
        return False


def generate_url_token() -> str:
    """Random URL-safe token for verification and reset links."""
    return secrets.token_urlsafe(32)


def validate_email(email: str) -> None:
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address")


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    user: User
    session: UserSession
    token: str


class AuthService:
    """Registration, verification, login and password reset."""

    def __init__(
        self,
        session: AsyncSession,
        token_codec: TokenCodec,
        email_sender: EmailSender,
        verification_ttl: timedelta = timedelta(hours=24),
        reset_ttl: timedelta = timedelta(minutes=15),
        user_agent_parser: UserAgentParser = parse_user_agent,
    ):
        self.session = session
        self.token_codec = token_codec
        self.email_sender = email_sender
        self.verification_ttl = verification_ttl
        self.reset_ttl = reset_ttl
        self.user_agent_parser = user_agent_parser
        self.sessions = SessionService(session)

    async def get_user_by_email(self, email: str) -> User | None:
        """Exact-match lookup; emails are not case-folded."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID) -> User:
        result = await self.session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an unverified user and send the verification email.

        A failed email send is logged; the registration still succeeds.
        """
        name = name.strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters")
        validate_email(email)
        validate_password(password)

        if await self.get_user_by_email(email) is not None:
            raise ConflictError("Email already registered")

        token = generate_url_token()
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            is_verified=False,
            verification_token=token,
            verification_token_expires_at=datetime.now(UTC) + self.verification_ttl,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration of the same email
            await self.session.rollback()
            if is_unique_violation(e):
                raise ConflictError("Email already registered") from e
            raise
        logger.info(f"Registered user {user.id}")

        try:
            await self.email_sender.send_verification_email(user.email, token)
        except EmailDeliveryError as e:
            logger.error(f"Verification email for user {user.id} failed: {e}")

        return user

    async def verify_email(self, token: str) -> User:
        """Consume a verification token."""
        result = await self.session.execute(
            select(User).where(
                User.verification_token == token,
                User.verification_token_expires_at > datetime.now(UTC),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidOrExpiredError("Invalid or expired verification link")

        user.is_verified = True
        user.verification_token = None
        user.verification_token_expires_at = None
        await self.session.commit()

        logger.info(f"Email verified for user {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration, and
        EmailNotVerifiedError only once the password has matched.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise InvalidCredentialsError()

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_verified:
            raise EmailNotVerifiedError()

        return user

    async def login(
        self, email: str, password: str, user_agent: str | None, ip: str
    ) -> LoginResult:
        """Authenticate, open the device session and sign its token."""
        user = await self.authenticate(email, password)

        identity = self.user_agent_parser(user_agent)
        ses = await self.sessions.open_session(user.id, identity, ip)
        token = self.token_codec.sign(user.id, ses.jti)

        logger.info(
            f"User {user.id} logged in on {identity.device}/{identity.browser}/{identity.os}",
            extra={"user_id": user.id, "session_id": ses.id, "device": identity.device, "ip": ip},
        )
        return LoginResult(user=user, session=ses, token=token)

    async def request_password_reset(self, email: str) -> str:
        """Start a password reset.

        Returns the same message whether or not the email is registered.
        Email delivery failures are logged and not reported to the caller.
        """
        validate_email(email)

        user = await self.get_user_by_email(email)
        if user is None:
            return RESET_REQUESTED_MESSAGE

        token = generate_url_token()
        user.reset_token = token
        user.reset_token_expires_at = datetime.now(UTC) + self.reset_ttl
        await self.session.commit()
        logger.info(f"Password reset requested for user {user.id}")

        try:
            await self.email_sender.send_reset_email(user.email, token)
        except EmailDeliveryError as e:
            logger.error(f"Reset email for user {user.id} failed: {e}")

        return RESET_REQUESTED_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token, set the new password and end every session."""
        validate_password(new_password)

        result = await self.session.execute(
            select(User).where(
                User.reset_token == token,
                User.reset_token_expires_at > datetime.now(UTC),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidOrExpiredError("Invalid or expired reset link")

        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires_at = None
        removed = await self.sessions.delete_all_for_user(user.id)
        await self.session.commit()

        logger.info(f"Password reset for user {user.id}; {removed} session(s) ended")
        return user
