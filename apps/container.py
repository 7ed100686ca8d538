"""
Application wiring: builds the repository manager, code store and OAuth registry once at startup.
"""

from dataclasses import dataclass
from typing import Optional

from framework.config import Settings
from framework.database.manager import DatabaseManager
from framework.exceptions.errors import ConfigurationError
from framework.logging.logger import get_logger
from framework.repository.manager import (
    InMemoryRepositoryManager,
    RepositoryManager,
    SqlRepositoryManager,
)
from apps.auth.code_store import CodeStore, InMemoryCodeStore, RedisCodeStore
from apps.auth.providers import KakaoProvider, OAuthProviderRegistry
from apps.delivery.memory import InMemoryDeliveryRepository
from apps.delivery.repository import DeliveryRepository, SqlDeliveryRepository
from apps.users.memory import InMemoryUserRepository, InMemoryUserStore
from apps.users.models import SocialProvider
from apps.users.repository import SqlUserRepository, UserRepository

logger = get_logger("container")


@dataclass
class AppContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    repositories: RepositoryManager
    code_store: CodeStore
    oauth_providers: OAuthProviderRegistry
    database: Optional[DatabaseManager] = None

    async def close(self) -> None:
        if self.database is not None:
            await self.database.disconnect()


def build_in_memory_repositories(store: Optional[InMemoryUserStore] = None) -> InMemoryRepositoryManager:
    if store is None:
        store = InMemoryUserStore()
    manager = InMemoryRepositoryManager()
    manager.register(UserRepository, InMemoryUserRepository(store))
    manager.register(DeliveryRepository, InMemoryDeliveryRepository(store))
    return manager


def build_sql_repositories(session_factory) -> SqlRepositoryManager:
    manager = SqlRepositoryManager(session_factory)
    manager.register(UserRepository, SqlUserRepository(session_factory))
    manager.register(DeliveryRepository, SqlDeliveryRepository(session_factory))
    return manager


def build_oauth_registry(settings: Settings) -> OAuthProviderRegistry:
    return OAuthProviderRegistry().register(
        SocialProvider.KAKAO,
        KakaoProvider(
            settings.KAKAO_CLIENT_ID,
            settings.KAKAO_REDIRECT_URI,
            timeout=settings.OAUTH_HTTP_TIMEOUT,
        ),
    )


async def build_container(settings: Settings) -> AppContainer:
    backend = settings.STORAGE_BACKEND.lower()
    code_driver = settings.CODE_STORE_DRIVER.lower()

    database = None
    if backend == "sql" or code_driver == "redis":
        database = DatabaseManager.get_instance(settings)

    if backend == "memory":
        logger.warning("STORAGE_BACKEND is 'memory'; users are kept in process memory only")
        repositories = build_in_memory_repositories()
    elif backend == "sql":
        await database.mysql.connect()
        logger.info("Connected to relational store")
        repositories = build_sql_repositories(database.mysql.session_factory)
    else:
        raise ConfigurationError(f"Unsupported STORAGE_BACKEND={settings.STORAGE_BACKEND!r}")

    if code_driver == "memory":
        code_store = InMemoryCodeStore()
    elif code_driver == "redis":
        await database.redis.connect()
        code_store = RedisCodeStore(database.redis.get_client())
    else:
        raise ConfigurationError(f"Unsupported CODE_STORE_DRIVER={settings.CODE_STORE_DRIVER!r}")

    return AppContainer(
        repositories=repositories,
        code_store=code_store,
        oauth_providers=build_oauth_registry(settings),
        database=database,
    )
