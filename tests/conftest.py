"""
Shared fixtures for the CV backend integration tests.

Runs against a throw-away SQLite database (aiosqlite) unless TEST_DATABASE_URL
points somewhere else. Each test function gets its own session; tables are
created before and dropped after every test so each test starts clean.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator, Dict

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override settings *before* any app module is imported, so that
# settings.DATABASE_URL and the global engine point at the test DB.
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./test_cv.db",
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.database_models import User, UserRole  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

DEFAULT_PASSWORD = "secret123"


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. After the test, all tables are dropped
    so each test starts with a clean slate.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def create_user(
    session: AsyncSession,
    role: UserRole = UserRole.USER,
    username: str | None = None,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
) -> User:
    """Insert a user directly, bypassing the registration rules."""
    username = username or f"{role.value}_account"
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash=hash_password(password),
        role=role,
    )
    session.add(user)
    await session.flush()
    return user


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.ADMIN)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers(admin_user)


@pytest_asyncio.fixture
async def moderator_headers(db_session: AsyncSession) -> Dict[str, str]:
    return auth_headers(await create_user(db_session, UserRole.MODERATOR))


@pytest_asyncio.fixture
async def user_headers(db_session: AsyncSession) -> Dict[str, str]:
    return auth_headers(await create_user(db_session, UserRole.USER))


@pytest_asyncio.fixture
async def guest_headers(db_session: AsyncSession) -> Dict[str, str]:
    return auth_headers(await create_user(db_session, UserRole.GUEST))
