"""
Unit of Work: one atomic sequence of storage operations, committed or rolled back as a whole.

A unit of work is produced by a repository manager and consumed by repositories through
``repo.with_transaction(uow)``. Open it with ``async with manager.transaction() as uow:``; the block
always finalizes it. A bare ``await manager.begin()`` leaves commit or rollback to the caller, and an
unfinalized SqlUnitOfWork that gets garbage-collected only logs a warning: its connection is left to
SQLAlchemy's pool cleanup. Each unit of work is single use:
after ``commit()`` or ``rollback()`` further calls of either are no-ops, while repository
calls routed through it raise ``TransactionStateError``.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from framework.exceptions.errors import StorageError, TransactionStateError
from framework.logging.logger import get_logger

logger = get_logger("unit_of_work")


class UnitOfWork(ABC):
    """Backend-neutral transaction handle."""

    @property
    @abstractmethod
    def finalized(self) -> bool:
        """True once commit() or rollback() has run."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit all changes. No-op if already finalized."""

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback all changes. No-op if already finalized."""

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()
        else:
            await self.commit()


class SqlUnitOfWork(UnitOfWork):
    """Wraps an AsyncSession holding an open transaction.

    The session is guarded by an asyncio.Lock so that repositories bound to this unit of
    work never interleave statements on it. Commit/rollback take the session out from
    under the lock, so exactly one of them reaches the database.
    """

    def __init__(self, session: AsyncSession):
        self._session: Optional[AsyncSession] = session
        self._lock = asyncio.Lock()

    @classmethod
    async def begin(cls, session: AsyncSession) -> "SqlUnitOfWork":
        """Open a transaction on the given session and wrap it."""
        try:
            await session.begin()
        except SQLAlchemyError as e:
            await session.close()
            logger.opt(exception=e).error("Failed to begin transaction")
            raise StorageError("Failed to begin transaction", cause=e) from e
        return cls(session)

    @property
    def finalized(self) -> bool:
        return self._session is None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncSession]:
        """Hold the transaction lock and yield the live session."""
        async with self._lock:
            if self._session is None:
                raise TransactionStateError("Transaction has already been committed or rolled back")
            yield self._session

    async def commit(self) -> None:
        async with self._lock:
            session, self._session = self._session, None
        if session is None:
            return
        try:
            await session.commit()
        except SQLAlchemyError as e:
            logger.opt(exception=e).error("Transaction commit failed")
            raise StorageError("Transaction commit failed", cause=e) from e
        finally:
            await session.close()

    async def rollback(self) -> None:
        async with self._lock:
            session, self._session = self._session, None
        if session is None:
            return
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.opt(exception=e).error("Transaction rollback failed")
            raise StorageError("Transaction rollback failed", cause=e) from e
        finally:
            await session.close()

    def __del__(self):
        if getattr(self, "_session", None) is not None:
            logger.warning("SqlUnitOfWork was garbage-collected without commit or rollback")

    def __repr__(self) -> str:
        return f"SqlUnitOfWork(finalized={self.finalized})"


class InMemoryUnitOfWork(UnitOfWork):
    """Marker unit of work for the in-memory backend.

    Writes made through bound repositories are applied immediately; rollback does not undo them.
    """

    def __init__(self):
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def ensure_active(self) -> None:
        if self._finalized:
            raise TransactionStateError("Transaction has already been committed or rolled back")

    async def commit(self) -> None:
        self._finalized = True

    async def rollback(self) -> None:
        self._finalized = True

    def __repr__(self) -> str:
        return f"InMemoryUnitOfWork(finalized={self.finalized})"
