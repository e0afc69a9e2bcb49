"""Bearer token codec.

Tokens are HS256 JWTs binding a user id (``sub``) to a session secret
(``jti``). Signature validity alone never authenticates a request; the
session row carrying the jti must also still exist.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from jwt.exceptions import PyJWTError

from sessionauth.services.errors import InvalidTokenError


def new_jti() -> str:
    """Generate a fresh 128-bit session secret."""
    return secrets.token_hex(16)


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""

    user_id: UUID
    jti: str


class TokenCodec:
    """Sign and verify bearer tokens with a fixed server-side secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_in: timedelta | None = None,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expires_in = expires_in or timedelta(days=7)

    def sign(self, user_id: UUID, jti: str, now: datetime | None = None) -> str:
        """Create a token for the given user and session secret."""
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "jti": jti,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature and expiry and return the claims.

        Raises InvalidTokenError for every failure so callers cannot tell a
        forged token from an expired one.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "jti", "exp"]},
            )
        except PyJWTError as e:
            raise InvalidTokenError() from e

        jti = payload.get("jti")
        if not isinstance(jti, str) or not jti:
            raise InvalidTokenError()
        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError as e:
            raise InvalidTokenError() from e

        return TokenClaims(user_id=user_id, jti=jti)
