"""Repository manager registry tests."""
import pytest

from framework.exceptions.errors import ConfigurationError
from framework.repository.manager import InMemoryRepositoryManager, SqlRepositoryManager
from apps.users.memory import InMemoryUserRepository, InMemoryUserStore
from apps.users.repository import SqlUserRepository, UserRepository


class OtherRepository(InMemoryUserRepository):
    pass


class TestRegistry:

    def test_get_returns_registered_instance(self):
        manager = InMemoryRepositoryManager()
        repo = InMemoryUserRepository(InMemoryUserStore())
        manager.register(UserRepository, repo)

        assert manager.get(UserRepository) is repo
        assert manager.require(UserRepository) is repo

    def test_get_unregistered_returns_none(self):
        manager = InMemoryRepositoryManager()
        assert manager.get(UserRepository) is None

    def test_require_unregistered_raises(self):
        manager = InMemoryRepositoryManager()
        with pytest.raises(ConfigurationError):
            manager.require(UserRepository)

    def test_register_rejects_non_instance(self):
        manager = InMemoryRepositoryManager()
        with pytest.raises(ConfigurationError):
            manager.register(OtherRepository, InMemoryUserRepository(InMemoryUserStore()))

    def test_lookup_is_by_exact_capability(self):
        manager = InMemoryRepositoryManager()
        manager.register(OtherRepository, OtherRepository(InMemoryUserStore()))
        assert manager.get(UserRepository) is None

    def test_sql_manager_registers_sql_repository(self, session_factory):
        manager = SqlRepositoryManager(session_factory)
        repo = SqlUserRepository(session_factory)
        manager.register(UserRepository, repo)

        assert manager.require(UserRepository) is repo
        assert manager.session_factory is session_factory
