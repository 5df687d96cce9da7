"""
Shared fixtures: a throwaway SQLite database per test, a token issuer with
a known secret, and an HTTP client bound to the FastAPI app.
"""

import os

# Must be set before config.settings is first imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.dependencies import token_issuer
from auth.jwt import TokenIssuer
from auth.store import CredentialStore
from database.session import build_engine, get_db_session, init_db

TEST_SECRET = "test-secret"


@pytest_asyncio.fixture
async def engine(tmp_path):
    # A file database so concurrent sessions get their own connections.
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def store(session):
    return CredentialStore(session)


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_SECRET, 3600)


@pytest.fixture
def app(session_factory, issuer):
    from main import create_app

    app = create_app()

    async def _test_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    app.dependency_overrides[token_issuer] = lambda: issuer
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
