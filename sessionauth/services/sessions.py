"""Session store and the login upsert protocol.

One row per (user, device, browser, os). A login from a known device identity
rewrites that row's jti instead of adding a row, which invalidates whatever
token was previously issued to the same device.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionauth.models.user_session import UserSession
from sessionauth.services.device import DeviceIdentity
from sessionauth.services.errors import InvalidOperationError, NotFoundError
from sessionauth.services.tokens import new_jti

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """Whether an IntegrityError is a duplicate-key error (not FK/NOT NULL)."""
    orig = exc.orig
    # asyncpg exposes sqlstate, psycopg exposes pgcode
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _UNIQUE_VIOLATION_SQLSTATE
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key" in message.lower()


@dataclass(frozen=True)
class SessionView:
    """A session as shown in the device list."""

    id: UUID
    device: str
    browser: str
    os: str
    ip: str
    last_active: datetime
    created_at: datetime
    is_current: bool


class SessionService:
    """Persistence and lifecycle of device sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def open_session(self, user_id: UUID, identity: DeviceIdentity, ip: str) -> UserSession:
        """Create or refresh the session for a device identity.

        1. UPDATE the row matching the identity with a fresh jti.
        2. If no row matched, INSERT one inside a savepoint.
        3. If the INSERT hits the unique constraint, a concurrent login from
           the same identity inserted first: repeat step 1 once.

        Returns the committed row carrying the new jti.
        """
        jti = new_jti()
        now = datetime.now(UTC)

        if not await self._refresh_device_session(user_id, identity, jti, ip, now):
            try:
                async with self.session.begin_nested():
                    self.session.add(
                        UserSession(
                            user_id=user_id,
                            jti=jti,
                            device=identity.device,
                            browser=identity.browser,
                            os=identity.os,
                            ip=ip,
                            last_active=now,
                        )
                    )
                    await self.session.flush()
            except IntegrityError as e:
                if not is_unique_violation(e):
                    raise
                logger.info(
                    f"Concurrent login for user {user_id} on "
                    f"{identity.device}/{identity.browser}/{identity.os}; retrying as update",
                    extra={"user_id": user_id, "device": identity.device},
                )
                if not await self._refresh_device_session(user_id, identity, jti, ip, now):
                    raise

        await self.session.commit()

        ses = await self.get_active(user_id, jti)
        if ses is None:
            raise RuntimeError("Session row missing after upsert")
        return ses

    async def _refresh_device_session(
        self,
        user_id: UUID,
        identity: DeviceIdentity,
        jti: str,
        ip: str,
        now: datetime,
    ) -> bool:
        """Point an existing device row at a new jti. Returns True if a row matched."""
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            update(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.device == identity.device,
                UserSession.browser == identity.browser,
                UserSession.os == identity.os,
            )
            .values(jti=jti, ip=ip, last_active=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def get_active(self, user_id: UUID, jti: str) -> UserSession | None:
        """Look up the session a token points at."""
        result = await self.session.execute(
            select(UserSession)
            .where(UserSession.jti == jti, UserSession.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def touch(self, ses: UserSession) -> None:
        """Record activity on a session."""
        ses.last_active = datetime.now(UTC)
        await self.session.commit()

    async def list_for_user(
        self, user_id: UUID, current_session_id: UUID | None = None
    ) -> list[SessionView]:
        """All sessions of a user, most recently active first."""
        result = await self.session.execute(
            select(UserSession)
            .where(UserSession.user_id == user_id)
            .order_by(UserSession.last_active.desc())
            .execution_options(populate_existing=True)
        )
        return [
            SessionView(
                id=s.id,
                device=s.device,
                browser=s.browser,
                os=s.os,
                ip=s.ip,
                last_active=s.last_active,
                created_at=s.created_at,
                is_current=s.id == current_session_id,
            )
            for s in result.scalars().all()
        ]

    async def revoke(self, user_id: UUID, session_id: UUID, current_session_id: UUID) -> None:
        """Delete another session of the same user.

        Raises:
            NotFoundError: the session does not exist or belongs to someone else
            InvalidOperationError: the session is the caller's own (use logout)
        """
        result = await self.session.execute(
            select(UserSession.id).where(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Session not found")

        if session_id == current_session_id:
            raise InvalidOperationError("Cannot revoke the current session. Use logout instead.")

        await self.session.execute(
            delete(UserSession).where(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
            )
        )
        await self.session.commit()
        logger.info(
            f"Session {session_id} revoked by user {user_id}",
            extra={"user_id": user_id, "session_id": session_id},
        )

    async def logout(self, user_id: UUID, jti: str) -> int:
        """Delete the caller's own session. Repeating it is a no-op."""
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            delete(UserSession).where(UserSession.jti == jti, UserSession.user_id == user_id)
        )
        await self.session.commit()
        return result.rowcount

    async def logout_all(self, user_id: UUID) -> int:
        """Delete every session of the user."""
        removed = await self.delete_all_for_user(user_id)
        await self.session.commit()
        logger.info(
            f"User {user_id} logged out of {removed} session(s)", extra={"user_id": user_id}
        )
        return removed

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every session of the user without committing."""
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            delete(UserSession).where(UserSession.user_id == user_id)
        )
        return result.rowcount
