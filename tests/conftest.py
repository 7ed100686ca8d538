"""Test config and shared fixtures."""
import os

# Settings are read once on first import; keep tests off MySQL, Redis, SMTP and the log dir
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("CODE_STORE_DRIVER", "memory")
os.environ.setdefault("NOTIFICATION_DRIVER", "mock")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from typing import AsyncGenerator, Dict, List, Tuple
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from main import app
from framework.exceptions.errors import UpstreamError
from framework.repository.manager import RepositoryManager
from apps.auth.code_store import InMemoryCodeStore
from apps.auth.providers import OAuthProvider, OAuthProviderRegistry, OAuthUserInfo
from apps.auth.service import VerificationService
from apps.container import AppContainer, build_in_memory_repositories, build_sql_repositories
from apps.users.memory import InMemoryUserStore
from apps.users.models import SocialProvider
from apps.users.service import UserService


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeOAuthProvider(OAuthProvider):
    """Maps authorization codes to canned profiles."""

    AUTHORIZE_URL = "https://oauth.test/authorize?client_id=test"

    def __init__(self, profiles: Dict[str, OAuthUserInfo]):
        self.profiles = profiles

    def get_authorization_url(self) -> str:
        return self.AUTHORIZE_URL

    async def get_user_info(self, code: str) -> OAuthUserInfo:
        if code not in self.profiles:
            raise UpstreamError(f"Unknown authorization code {code}")
        return self.profiles[code]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine with the schema created; StaticPool keeps one shared connection."""
    import apps.models  # noqa: F401  registers tables in metadata

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sql_manager(session_factory) -> RepositoryManager:
    return build_sql_repositories(session_factory)


@pytest.fixture
def memory_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def memory_manager(memory_store: InMemoryUserStore) -> RepositoryManager:
    return build_in_memory_repositories(memory_store)


@pytest.fixture(params=["sql", "memory"])
def manager(request, sql_manager, memory_manager) -> RepositoryManager:
    """Same tests, both backends."""
    return sql_manager if request.param == "sql" else memory_manager


@pytest.fixture
def code_store() -> InMemoryCodeStore:
    return InMemoryCodeStore()


@pytest.fixture
def outbox() -> List[Tuple[str, str]]:
    """(address, code) pairs handed to the email sender."""
    return []


@pytest.fixture
def user_service(manager: RepositoryManager) -> UserService:
    return UserService(manager)


@pytest.fixture
def verification_service(manager, code_store, outbox) -> VerificationService:
    async def _send(email_to: str, code: str) -> None:
        outbox.append((email_to, code))

    return VerificationService(manager, code_store, send_code=_send)


@pytest.fixture
def kakao_profile() -> OAuthUserInfo:
    return OAuthUserInfo(
        provider_id="4242",
        email="kakao_user@example.com",
        name="Kakao User",
        connected_at="2026-10-01T09:00:00Z",
    )


@pytest.fixture
def oauth_registry(kakao_profile: OAuthUserInfo) -> OAuthProviderRegistry:
    return OAuthProviderRegistry().register(
        SocialProvider.KAKAO, FakeOAuthProvider({"good-code": kakao_profile})
    )


@pytest.fixture
def container(manager, code_store, oauth_registry) -> AppContainer:
    return AppContainer(repositories=manager, code_store=code_store, oauth_providers=oauth_registry)


@pytest.fixture
async def client(container: AppContainer) -> AsyncGenerator[AsyncClient, None]:
    """Create test client; the lifespan is skipped, so the container is installed by hand."""
    app.state.container = container

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.container
