"""
TravelStory Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own temporary SQLite database (aiosqlite) and
       upload directory, so tests never touch PostgreSQL or each other.

Fixture Hierarchy (all function-scoped):
    test_settings ─┬─ database ── db_session
                   ├─ auth_service / file_service / story_service
                   └─ app ── client ── auth_headers / second_user_headers
"""

from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from travelstory.config import Settings
from travelstory.database import Database
from travelstory.services.auth_service import AuthService
from travelstory.services.file_service import FileService
from travelstory.services.story_service import StoryService

TEST_BASE_URL = "http://testserver"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """
    Settings pointing at throwaway storage.

    bcrypt_rounds=4 keeps hashing fast; _env_file=None ignores any local .env.
    """
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        auto_create_schema=True,
        access_token_secret="test-secret-not-real",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        assets_dir=str(tmp_path / "assets"),
        public_base_url=TEST_BASE_URL,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """A session that commits when the test finishes, like one request."""
    async with database.session() as session:
        yield session


@pytest.fixture
def auth_service(test_settings) -> AuthService:
    return AuthService(test_settings)


@pytest.fixture
def file_service(test_settings) -> FileService:
    service = FileService(
        upload_root=test_settings.upload_dir,
        public_base_url=test_settings.public_base_url,
        max_file_size=test_settings.max_file_size,
    )
    service.ensure_storage()
    return service


@pytest.fixture
def story_service(file_service, test_settings) -> StoryService:
    return StoryService(
        file_service=file_service,
        placeholder_image_url=test_settings.effective_placeholder_image_url,
    )


@pytest.fixture
def sample_png_bytes() -> bytes:
    """A 1x1 transparent PNG."""
    return (
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
        b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\xdac\xf8\x0f"
        b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
    )


@pytest_asyncio.fixture
async def app(test_settings):
    """
    A fresh app per test with its own ServiceContext.

    ASGITransport does not drive the lifespan, so startup/shutdown are
    called here directly.
    """
    from travelstory.main import create_app

    application = create_app(test_settings)
    await application.state.context.startup()
    yield application
    await application.state.context.shutdown()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=TEST_BASE_URL) as c:
        yield c


async def register(client: AsyncClient, email: str, full_name: str = "Test User") -> Dict[str, str]:
    response = await client.post(
        "/create-account",
        json={"fullName": full_name, "email": email, "password": "s3cret-pass"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest_asyncio.fixture
async def auth_headers(client) -> Dict[str, str]:
    return await register(client, "alice@example.com", "Alice Traveler")


@pytest_asyncio.fixture
async def second_user_headers(client) -> Dict[str, str]:
    return await register(client, "bob@example.com", "Bob Wanderer")
