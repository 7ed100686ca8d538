"""Unit of work lifecycle tests."""
import asyncio
import gc

import pytest
from loguru import logger

from framework.exceptions.errors import TransactionStateError
from framework.repository.unit_of_work import InMemoryUnitOfWork, SqlUnitOfWork
from apps.users.models import UserCreate, VerificationCreate
from apps.users.repository import UserRepository


def _draft(uuid: str = "1001", email: str = "uow@example.com") -> UserCreate:
    return UserCreate(uuid=uuid, username="uow", email=email)


class TestUnitOfWorkFinalization:
    """Commit/rollback run once; later calls are no-ops."""

    @pytest.mark.asyncio
    async def test_begin_returns_backend_specific_handle(self, sql_manager, memory_manager):
        sql_uow = await sql_manager.begin()
        memory_uow = await memory_manager.begin()
        try:
            assert isinstance(sql_uow, SqlUnitOfWork)
            assert isinstance(memory_uow, InMemoryUnitOfWork)
        finally:
            await sql_uow.rollback()
            await memory_uow.rollback()

    @pytest.mark.asyncio
    async def test_double_commit_and_rollback_are_noops(self, manager):
        uow = await manager.begin()
        assert uow.finalized is False

        await uow.commit()
        assert uow.finalized is True

        await uow.commit()
        await uow.rollback()
        assert uow.finalized is True

    @pytest.mark.asyncio
    async def test_double_rollback_is_noop(self, manager):
        uow = await manager.begin()
        await uow.rollback()
        await uow.rollback()
        assert uow.finalized is True

    @pytest.mark.asyncio
    async def test_bound_repository_rejects_finalized_uow(self, manager):
        users = manager.require(UserRepository)
        uow = await manager.begin()
        bound = users.with_transaction(uow)
        await uow.commit()

        with pytest.raises(TransactionStateError):
            await bound.find_by_uuid("nobody")

    @pytest.mark.asyncio
    async def test_transaction_block_commits_on_clean_exit(self, manager):
        users = manager.require(UserRepository)

        async with manager.transaction() as uow:
            bound = users.with_transaction(uow)
            await bound.create_user_with_verification(_draft(), None, VerificationCreate())

        assert uow.finalized is True
        assert await users.find_by_uuid("1001") is not None


class TestSqlRollback:
    """Rollback discards work done through a bound relational repository."""

    @pytest.mark.asyncio
    async def test_explicit_rollback_discards_insert(self, sql_manager):
        users = sql_manager.require(UserRepository)
        uow = await sql_manager.begin()
        bound = users.with_transaction(uow)

        await bound.create_user_with_verification(_draft(), None, VerificationCreate())
        assert await bound.find_by_uuid("1001") is not None
        await uow.rollback()

        assert await users.find_by_uuid("1001") is None

    @pytest.mark.asyncio
    async def test_exception_in_block_rolls_back(self, sql_manager):
        users = sql_manager.require(UserRepository)

        with pytest.raises(RuntimeError):
            async with sql_manager.transaction() as uow:
                bound = users.with_transaction(uow)
                await bound.create_user_with_verification(_draft(), None, VerificationCreate())
                raise RuntimeError("boom")

        assert uow.finalized is True
        assert await users.find_by_email("uow@example.com") is None

    @pytest.mark.asyncio
    async def test_cancellation_in_block_rolls_back(self, sql_manager):
        users = sql_manager.require(UserRepository)

        with pytest.raises(asyncio.CancelledError):
            async with sql_manager.transaction() as uow:
                bound = users.with_transaction(uow)
                await bound.create_user_with_verification(_draft(), None, VerificationCreate())
                raise asyncio.CancelledError()

        assert uow.finalized is True
        assert await users.find_by_uuid("1001") is None

    @pytest.mark.asyncio
    async def test_abandoned_uow_is_reported(self, sql_manager):
        """Dropping a begun unit of work without finalizing it logs a warning."""
        messages = []
        sink_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            uow = await sql_manager.begin()
            del uow
            gc.collect()
        finally:
            logger.remove(sink_id)

        assert any("without commit or rollback" in m for m in messages)

    @pytest.mark.asyncio
    async def test_finalized_uow_is_not_reported(self, sql_manager):
        messages = []
        sink_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            uow = await sql_manager.begin()
            await uow.commit()
            del uow
            gc.collect()
        finally:
            logger.remove(sink_id)

        assert not any("without commit or rollback" in m for m in messages)

class TestForeignUnitOfWork:
    """A repository asked to join another backend's unit of work declines with None."""

    @pytest.mark.asyncio
    async def test_sql_repository_rejects_memory_uow(self, sql_manager):
        users = sql_manager.require(UserRepository)
        assert users.with_transaction(InMemoryUnitOfWork()) is None

    @pytest.mark.asyncio
    async def test_memory_repository_rejects_sql_uow(self, sql_manager, memory_manager):
        users = memory_manager.require(UserRepository)
        uow = await sql_manager.begin()
        try:
            assert users.with_transaction(uow) is None
        finally:
            await uow.rollback()

    @pytest.mark.asyncio
    async def test_same_backend_rebind_is_bound(self, manager):
        users = manager.require(UserRepository)
        uow = await manager.begin()
        try:
            bound = users.with_transaction(uow)
            assert bound is not None
            assert bound is not users
        finally:
            await uow.rollback()
