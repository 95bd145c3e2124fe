from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from oauth_registry.main import app
from oauth_registry.database import Base, get_db
from oauth_registry.api.deps import create_access_token, get_logo_storage
from oauth_registry.models.oauth_client import OAuthClient
from oauth_registry.models.user import User
from oauth_registry.services.logo_storage import LogoStorage

from factories import OAuthClientFactory, ScopedOAuthClientFactory, UserFactory

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_oauth_registry.db"

TEST_LOGO_BASE_URL = "http://test/static/client/logo/"

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def logo_bytes() -> bytes:
    """A small valid PNG."""
    return (DATA_DIR / "newClient.png").read_bytes()


@pytest.fixture
def logo_storage(tmp_path: Path) -> LogoStorage:
    """Logo store rooted in a per-test directory, default logo installed."""
    storage = LogoStorage(upload_dir=tmp_path / "logo", base_url=TEST_LOGO_BASE_URL)
    storage.ensure_default()
    return storage


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _create_user(db: AsyncSession, **overrides) -> User:
    user = User(**UserFactory(**overrides))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def _create_client(
    db: AsyncSession, owner: User, storage: LogoStorage, factory=OAuthClientFactory, **overrides
) -> OAuthClient:
    data = factory(owner_id=owner.id, logo_uri=storage.default_uri, **overrides)
    oauth_client = OAuthClient(**data)
    db.add(oauth_client)
    await db.commit()
    await db.refresh(oauth_client)
    return oauth_client


@pytest_asyncio.fixture
async def test_user(test_db: AsyncSession):
    """Create the user the authenticated client acts as."""
    return await _create_user(test_db, email="test@example.com", username="testuser")


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession):
    """Create a second user whose clients must stay invisible."""
    return await _create_user(test_db, email="other@example.com", username="otheruser")


@pytest_asyncio.fixture
async def owned_client(test_db: AsyncSession, test_user: User, logo_storage: LogoStorage):
    """A client owned by the test user."""
    return await _create_client(
        test_db,
        test_user,
        logo_storage,
        client_name="client1",
        client_uri="http://www.client1.com",
        redirect_uris=["http://www.client1.com/callback"],
    )


@pytest_asyncio.fixture
async def second_owned_client(test_db: AsyncSession, test_user: User, owned_client: OAuthClient, logo_storage: LogoStorage):
    """Another client owned by the test user, created after ``owned_client``."""
    return await _create_client(
        test_db,
        test_user,
        logo_storage,
        client_name="client2",
        client_uri="http://www.client2.com",
        factory=ScopedOAuthClientFactory,
    )


@pytest_asyncio.fixture
async def foreign_client(test_db: AsyncSession, other_user: User, logo_storage: LogoStorage):
    """A client owned by the other user."""
    return await _create_client(test_db, other_user, logo_storage, client_name="otherClient")


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, logo_storage: LogoStorage):
    """Create test client with overridden database and logo storage."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_logo_storage] = lambda: logo_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client: AsyncClient, test_user: User):
    """Create a test client carrying the test user's session cookie."""
    token = create_access_token(data={"sub": str(test_user.id)})
    client.headers["Cookie"] = f"session={token}"
    return client
