# Session Auth Services
from sessionauth.services.auth import AuthService, LoginResult
from sessionauth.services.device import DeviceIdentity, parse_user_agent
from sessionauth.services.email import EmailSender
from sessionauth.services.sessions import SessionService, SessionView
from sessionauth.services.tokens import TokenClaims, TokenCodec

__all__ = [
    "AuthService",
    "DeviceIdentity",
    "EmailSender",
    "LoginResult",
    "SessionService",
    "SessionView",
    "TokenClaims",
    "TokenCodec",
    "parse_user_agent",
]
