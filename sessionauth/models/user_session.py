"""UserSession model - one row per authenticated device."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionauth.models.base import BaseModel

if TYPE_CHECKING:
    from sessionauth.models.user import User

UNKNOWN = "Unknown"


class UserSession(BaseModel):
    """Server-side session bound to a bearer token through its jti.

    A token is only honoured while the row carrying its jti exists, so
    deleting the row revokes the token before it expires.

    (user_id, device, browser, os) is the device identity: at most one row
    exists per identity, and a new login from the same identity replaces the
    jti in place.
    """

    __tablename__ = "user_sessions"

    __table_args__ = (
        UniqueConstraint(
            "user_id", "device", "browser", "os", name="uq_user_sessions_device_identity"
        ),
        Index("ix_user_sessions_user_id", "user_id"),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # 128-bit random hex secret, mirrored in the token
    jti: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    device: Mapped[str] = mapped_column(String(255), nullable=False, default=UNKNOWN)
    browser: Mapped[str] = mapped_column(String(255), nullable=False, default=UNKNOWN)
    os: Mapped[str] = mapped_column(String(255), nullable=False, default=UNKNOWN)
    ip: Mapped[str] = mapped_column(String(255), nullable=False, default=UNKNOWN)

    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<UserSession {self.device}/{self.browser}/{self.os} (user_id={self.user_id})>"
