"""Authentication error hierarchy.

Each error carries the HTTP status it maps to. Messages stay
generic where a precise message would reveal which check failed.
"""


class AuthError(Exception):
    """Base authentication error."""

    status_code: int = 400
    default_message: str = "Request could not be processed"
    # Token-related rejections also drop the token cookie
    clears_cookie: bool = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed input."""

    status_code = 400
    default_message = "Invalid input"


class ConflictError(AuthError):
    """Email already registered."""

    status_code = 409
    default_message = "Email already registered"


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password."""

    status_code = 401
    default_message = "Invalid credentials"


class InvalidOrExpiredError(AuthError):
    """Verification or reset token does not match or has expired."""

    status_code = 400
    default_message = "Invalid or expired link"


class EmailNotVerifiedError(AuthError):
    """Valid credentials, but the account has not been verified."""

    status_code = 403
    default_message = "Please verify your email before logging in"


class AuthRequiredError(AuthError):
    """No bearer token was presented."""

    status_code = 401
    default_message = "Authentication required"


class InvalidTokenError(AuthError):
    """Bearer token is malformed, forged or expired."""

    status_code = 401
    clears_cookie = True
    default_message = "Invalid or expired token"


class SessionRevokedError(AuthError):
    """Token is cryptographically valid but its session row is gone."""

    status_code = 401
    clears_cookie = True
    default_message = "Session expired or revoked"


class NotFoundError(AuthError):
    status_code = 404
    default_message = "Not found"


class InvalidOperationError(AuthError):
    """Operation is not allowed on this target (e.g. revoking the current session)."""

    status_code = 400
    default_message = "Operation not allowed"


class EmailDeliveryError(Exception):
    """The email collaborator failed to send a message."""
