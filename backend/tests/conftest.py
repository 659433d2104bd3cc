"""
Bug Tracker - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''

from bugtracker.main import app
from bugtracker.core.database import Base, get_db
from bugtracker.core.security import get_password_hash, create_access_token
from bugtracker.models.user import User, UserRole
from bugtracker.models.bug import Bug, BugStatus, BugPriority

fake = Faker()

TEST_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


def make_username() -> str:
    return f"{fake.user_name()[:20]}{fake.random_int(100, 999)}"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def test_user_data() -> dict:
    """Registration payload as the web client sends it"""
    return {
        'username': make_username(),
        'email': fake.unique.email(),
        'password': TEST_PASSWORD,
        'firstName': fake.first_name(),
        'lastName': fake.last_name(),
    }


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user"""
    user = User(
        username=make_username(),
        email=fake.unique.email(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name='Jane',
        last_name='Doe',
        role=UserRole.DEVELOPER,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def inactive_user(db_session: AsyncSession) -> User:
    """Create a deactivated user"""
    user = User(
        username=make_username(),
        email=fake.unique.email(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name=fake.first_name(),
        last_name=fake.last_name(),
        is_active=False,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    token = create_access_token(str(test_user.id))
    return {'Authorization': f'Bearer {token}'}


@pytest_asyncio.fixture
async def sample_bugs(db_session: AsyncSession) -> list:
    """A small spread of bugs across statuses and priorities"""
    bugs = [
        Bug(title='Login button unresponsive', description='Clicking does nothing on Safari',
            status=BugStatus.OPEN, priority=BugPriority.HIGH),
        Bug(title='Crash on save', description='App crashes after LOGIN timeout',
            status=BugStatus.OPEN, priority=BugPriority.LOW),
        Bug(title='Typo in footer', description='Copyright year is wrong',
            status=BugStatus.RESOLVED, priority=BugPriority.HIGH),
        Bug(title='Slow dashboard', description='Charts take 10s to render',
            status=BugStatus.IN_PROGRESS, priority=BugPriority.MEDIUM),
    ]
    for bug in bugs:
        db_session.add(bug)
        await db_session.commit()
        await db_session.refresh(bug)
    return bugs
