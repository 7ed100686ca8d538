"""
Repository manager: capability registry and unit-of-work factory.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Type, TypeVar

from framework.exceptions.errors import ConfigurationError
from framework.logging.logger import get_logger
from .base import SessionFactory
from .unit_of_work import InMemoryUnitOfWork, SqlUnitOfWork, UnitOfWork

C = TypeVar("C")

logger = get_logger("repository_manager")


class RepositoryManager(ABC):
    """Maps a repository capability (an abstract class) to the instance wired at startup."""

    def __init__(self):
        self._repositories: Dict[type, Any] = {}

    def register(self, capability: Type[C], repository: C) -> None:
        if not isinstance(repository, capability):
            raise ConfigurationError(
                f"{type(repository).__name__} does not implement {capability.__name__}"
            )
        self._repositories[capability] = repository
        logger.info(f"Registered {type(repository).__name__} as {capability.__name__}")

    def get(self, capability: Type[C]) -> Optional[C]:
        return self._repositories.get(capability)

    def require(self, capability: Type[C]) -> C:
        """Like get(), but a missing capability is a wiring bug and raises ConfigurationError."""
        repository = self.get(capability)
        if repository is None:
            raise ConfigurationError(f"{capability.__name__} is not registered")
        return repository

    @abstractmethod
    async def begin(self) -> UnitOfWork:
        """Open a new transaction scope; the caller must commit or roll back. Prefer transaction()."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """begin() scoped to a block: commits on clean exit, rolls back on error or cancellation."""
        uow = await self.begin()
        async with uow:
            yield uow


class SqlRepositoryManager(RepositoryManager):
    """Routes begin() to a real database transaction."""

    def __init__(self, session_factory: SessionFactory):
        super().__init__()
        self.session_factory = session_factory

    async def begin(self) -> SqlUnitOfWork:
        return await SqlUnitOfWork.begin(self.session_factory())


class InMemoryRepositoryManager(RepositoryManager):
    """begin() hands out a marker; the registered repositories do their own locking."""

    async def begin(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork()
