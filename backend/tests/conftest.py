"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time, so the test environment goes in first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-use")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("OAUTH_PROVIDERS", '["google"]')
os.environ.setdefault("OIDC_GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("OIDC_GOOGLE_CLIENT_SECRET", "test-client-secret")

from typing import Any, AsyncGenerator, Optional
from urllib.parse import urlencode

import pytest
import pytest_asyncio
from authlib.integrations.starlette_client import OAuthError
from fastapi.responses import RedirectResponse
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jargoyle.config import settings

# Enable CSRF bypass for the test suite. The middleware checks this flag
# explicitly, so a mis-set ENVIRONMENT in a real deployment cannot disable CSRF.
settings.SKIP_CSRF_IN_TESTS = True

from jargoyle import models  # noqa: E402,F401
from jargoyle.core.database import Base, get_db  # noqa: E402
from jargoyle.dependencies import get_oauth_registry  # noqa: E402
from jargoyle.main import app  # noqa: E402
from jargoyle.models.user import User  # noqa: E402
from jargoyle.utils.datetime_utils import utc_now  # noqa: E402

# Use StaticPool so in-memory SQLite shares one connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeOIDCClient:
    """Stands in for an Authlib client; no network, no real provider."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        self.userinfo_claims: dict[str, Any] = {}
        self.error: Optional[Exception] = None
        self.authorize_params: Optional[dict[str, str]] = None
        self.token_exchanges = 0

    def signs_in(self, sub: Optional[str], **claims: Any) -> None:
        self.error = None
        self.userinfo_claims = {**claims}
        if sub is not None:
            self.userinfo_claims["sub"] = sub

    def fails_with(self, error: Exception) -> None:
        self.error = error

    async def authorize_redirect(self, request, redirect_uri: str, **params: str):
        self.authorize_params = dict(params)
        query = urlencode({"redirect_uri": redirect_uri, **params})
        return RedirectResponse(f"https://idp.example.com/authorize?{query}", status_code=302)

    async def authorize_access_token(self, request) -> dict[str, Any]:
        self.token_exchanges += 1
        if self.error is not None:
            raise self.error
        return {"access_token": "access", "userinfo": dict(self.userinfo_claims)}

    async def userinfo(self, token=None) -> dict[str, Any]:
        return dict(self.userinfo_claims)


class FakeOIDCRegistry:
    def __init__(self, *providers: str) -> None:
        self.clients = {name: FakeOIDCClient(name) for name in providers}

    @property
    def providers(self) -> list[str]:
        return list(self.clients)

    def client(self, provider_name: str) -> Optional[FakeOIDCClient]:
        return self.clients.get(provider_name)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
def fake_idp() -> FakeOIDCRegistry:
    return FakeOIDCRegistry("google", "keycloak")


@pytest_asyncio.fixture(scope="function")
async def async_client(
    override_get_db, fake_idp: FakeOIDCRegistry
) -> AsyncGenerator[AsyncClient, None]:
    """Client for the whole app; keeps cookies (session, CSRF) between requests."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_oauth_registry] = lambda: fake_idp
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(async_client: AsyncClient, fake_idp: FakeOIDCRegistry):
    """Complete a fake OIDC callback; returns the callback response."""

    async def _login(sub: Optional[str] = "sub-123", provider: str = "google", **claims: Any):
        fake_idp.clients[provider].signs_in(sub, **claims)
        return await async_client.get(
            f"/login/oauth2/code/{provider}", params={"code": "c", "state": "s"}
        )

    return _login


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A user that has logged in through Google before."""
    now = utc_now()
    user = User(
        email="ada@example.com",
        display_name="Ada",
        oauth_provider="google",
        oauth_subject="sub-123",
        created_at=now,
        last_login_at=now,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def oauth_error() -> OAuthError:
    return OAuthError(error="access_denied", description="User cancelled")
