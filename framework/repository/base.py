"""
Repository abstract base class and generic SQL implementation.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from framework.exceptions.errors import StorageError
from framework.logging.logger import get_logger
from .unit_of_work import SqlUnitOfWork, UnitOfWork

T = TypeVar("T", bound=SQLModel)
R = TypeVar("R", bound="Repository")

SessionFactory = Callable[[], AsyncSession]

logger = get_logger("repository")


class Repository(ABC):
    """Every repository can rebind itself onto a unit of work of its own backend."""

    @abstractmethod
    def with_transaction(self: R, uow: UnitOfWork) -> Optional[R]:
        """Return a handle bound to ``uow``, or None if ``uow`` belongs to another backend."""


class SqlRepository(Repository, Generic[T]):
    """Generic repository over SQLModel entities.

    Holds a session factory (pooled connections) and, once rebound, a SqlUnitOfWork.
    Every query goes through ``_session()``, which is the only place that decides between
    the two targets.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        model: Type[T],
        uow: Optional[SqlUnitOfWork] = None,
    ):
        self.session_factory = session_factory
        self.model = model
        self.uow = uow

    def with_transaction(self, uow: UnitOfWork):
        if not isinstance(uow, SqlUnitOfWork):
            logger.warning(f"{type(self).__name__} cannot join foreign unit of work {uow!r}")
            return None
        return self._rebind(uow)

    def _rebind(self, uow: SqlUnitOfWork):
        return type(self)(self.session_factory, uow=uow)

    @property
    def in_transaction(self) -> bool:
        return self.uow is not None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session for one repository call.

        Pooled: a fresh session inside an implicit transaction, committed when the block
        exits cleanly and rolled back otherwise.
        Bound: the unit of work's session, held under its lock; the caller owns the commit.
        """
        try:
            if self.uow is None:
                async with self.session_factory() as session:
                    async with session.begin():
                        yield session
            else:
                async with self.uow.acquire() as session:
                    yield session
        except SQLAlchemyError as e:
            logger.opt(exception=e).error(f"{self.model.__name__} storage operation failed: {e}")
            raise StorageError(f"{self.model.__name__} storage operation failed", cause=e) from e

    async def get_by_id(self, id: int) -> Optional[T]:
        """Get entity by ID."""
        async with self._session() as session:
            return await session.get(self.model, id)

    async def find_one(self, **filters) -> Optional[T]:
        """Find one entity by equality filters (e.g. email='a@b.c')."""
        async with self._session() as session:
            result = await session.exec(self._filtered(**filters))
            return result.first()

    async def find_all(self, **filters) -> List[T]:
        """Find entities by equality filters."""
        async with self._session() as session:
            result = await session.exec(self._filtered(**filters))
            return list(result.all())

    def _filtered(self, model: Optional[Type[SQLModel]] = None, **filters):
        model = model or self.model
        statement = select(model)
        for key, value in filters.items():
            statement = statement.where(getattr(model, key) == value)
        return statement
