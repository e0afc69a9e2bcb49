"""Pytest configuration and fixtures for Session Auth tests.

Database Handling:
- Uses TEST_DATABASE_URL if set (e.g. a PostgreSQL test database)
- Otherwise each test gets a fresh in-memory SQLite database
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app modules
_SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", _SQLITE_MEMORY_URL)

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-" + "0" * 32
os.environ["ENVIRONMENT"] = "test"
os.environ["BREVO_API_KEY"] = ""
os.environ["FRONTEND_URL"] = "http://frontend.test"

TEST_PASSWORD = "correct-horse-battery"

CHROME_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FIREFOX_LINUX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


def as_utc(value: datetime) -> datetime:
    """SQLite returns naive datetimes; treat them as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# --- Email ---


class RecordingEmailSender:
    """Stands in for EmailSender and records what would have been sent."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def send_verification_email(self, to: str, token: str) -> None:
        await self._record("verify", to, token)

    async def send_reset_email(self, to: str, token: str) -> None:
        await self._record("reset", to, token)

    async def _record(self, kind: str, to: str, token: str) -> None:
        from sessionauth.services.errors import EmailDeliveryError

        if self.fail:
            raise EmailDeliveryError("simulated outage")
        self.sent.append((kind, to, token))

    def last_token(self, kind: str, to: str | None = None) -> str:
        for sent_kind, sent_to, token in reversed(self.sent):
            if sent_kind == kind and (to is None or sent_to == to):
                return token
        raise AssertionError(f"No {kind} email recorded")


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with all tables for one test."""
    from sessionauth.core.database import enable_sqlite_savepoints, is_sqlite_url
    from sessionauth.models import BaseModel

    if is_sqlite_url(TEST_DATABASE_URL):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession, email_sender: RecordingEmailSender
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and email overrides."""
    from sessionauth.api.deps import get_email_sender
    from sessionauth.core.database import get_db
    from sessionauth.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Service Fixtures ---


@pytest.fixture
def token_codec():
    from sessionauth.api.deps import get_token_codec

    return get_token_codec()


@pytest.fixture
def auth_service(db_session, token_codec, email_sender):
    from sessionauth.services.auth import AuthService

    return AuthService(db_session, token_codec=token_codec, email_sender=email_sender)


@pytest.fixture
def session_service(db_session):
    from sessionauth.services.sessions import SessionService

    return SessionService(db_session)


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test User objects."""
    from sessionauth.models import User
    from sessionauth.services.auth import hash_password

    async def _create_user(
        name: str = "Test User",
        email: str = "user@example.com",
        password: str = TEST_PASSWORD,
        is_verified: bool = True,
        **kwargs: Any,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            is_verified=is_verified,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create_user


@pytest_asyncio.fixture
async def verified_user(user_factory):
    """A verified user who can log in with TEST_PASSWORD."""
    return await user_factory(name="Alice", email="alice@example.com")


# --- Auth Helpers ---


@pytest.fixture
def login(async_client) -> Callable[..., Awaitable[Response]]:
    """Log in through the API and return the raw response."""

    async def _login(
        email: str = "alice@example.com",
        password: str = TEST_PASSWORD,
        user_agent: str = CHROME_WINDOWS_UA,
    ) -> Response:
        return await async_client.post(
            "/auth/login",
            json={"email": email, "password": password},
            headers={"User-Agent": user_agent},
        )

    return _login


@pytest.fixture
def bearer() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a token."""

    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


# --- Pytest Hooks ---


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their fixtures and location.

    - Tests using db_session, db_engine, or async_client are marked as 'integration'
    - Everything else is marked as 'unit'
    - Tests can override with explicit markers
    """
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
