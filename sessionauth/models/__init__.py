# Session Auth Models
from sessionauth.models.base import BaseModel
from sessionauth.models.user import User
from sessionauth.models.user_session import UserSession

__all__ = [
    "BaseModel",
    "User",
    "UserSession",
]
