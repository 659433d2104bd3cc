"""
Bug Tracker CLI - Test Configuration and Fixtures

Client tests talk to the real API in-process through httpx's ASGI transport.
"""
import os
from typing import AsyncGenerator
import pytest
import pytest_asyncio
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from rich.console import Console

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''

from bugtracker.main import app
from bugtracker.core.database import Base, get_db

from bugtracker_cli.api import BugTrackerAPI
from bugtracker_cli.auth import CLIAuthManager
from bugtracker_cli.config import CLIConfig
from bugtracker_cli.storage import LocalStorage

API_BASE_URL = 'http://test/api'

test_engine = create_async_engine('sqlite+aiosqlite:///./test.db', echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema per test, shared with the app through get_db"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        async def override_get_db():
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session
        app.dependency_overrides.clear()
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def api_factory(db_session):
    """Build API clients wired to the in-process app"""
    def factory(token=None) -> BugTrackerAPI:
        return BugTrackerAPI(API_BASE_URL, token=token, transport=ASGITransport(app=app))
    return factory


@pytest_asyncio.fixture
async def api(api_factory) -> AsyncGenerator[BugTrackerAPI, None]:
    async with api_factory() as client:
        yield client


@pytest.fixture
def console() -> Console:
    """Console that records output instead of writing to the terminal"""
    return Console(record=True, width=200, force_terminal=False)


@pytest.fixture
def cli_config(tmp_path) -> CLIConfig:
    return CLIConfig(config_dir=str(tmp_path / ".bugtracker"), api_base_url=API_BASE_URL)


@pytest.fixture
def storage(cli_config) -> LocalStorage:
    return LocalStorage(cli_config.storage_file)


@pytest.fixture
def auth_manager(cli_config, console, api_factory) -> CLIAuthManager:
    return CLIAuthManager(cli_config, console, api_factory=api_factory)


@pytest.fixture
def registration() -> dict:
    return {
        'username': 'jdev',
        'email': 'john.dev@example.com',
        'password': 'secret123',
        'first_name': 'John',
        'last_name': 'Developer',
    }
