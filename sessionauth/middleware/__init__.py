"""Middleware module for Session Auth."""

from sessionauth.middleware.authentication import (
    AuthContext,
    auth_error_response,
    clear_token_cookie,
    extract_token,
    require_auth,
    set_token_cookie,
)

__all__ = [
    "AuthContext",
    "auth_error_response",
    "clear_token_cookie",
    "extract_token",
    "require_auth",
    "set_token_cookie",
]
