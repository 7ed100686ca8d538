"""Delivery address lookups. Rows are written outside this service; both backends only read them."""

from abc import abstractmethod
from typing import Optional

from framework.repository.base import Repository, SessionFactory, SqlRepository
from framework.repository.unit_of_work import SqlUnitOfWork, UnitOfWork
from apps.users.models import DeliveryData


class DeliveryRepository(Repository):

    @abstractmethod
    async def find_by_id(self, id: int) -> Optional[DeliveryData]:
        ...

    @abstractmethod
    async def find_by_user_id(self, user_id: int) -> Optional[DeliveryData]:
        """At most one address per user."""

    @abstractmethod
    def with_transaction(self, uow: UnitOfWork) -> Optional["DeliveryRepository"]:
        ...


class SqlDeliveryRepository(SqlRepository[DeliveryData], DeliveryRepository):

    def __init__(self, session_factory: SessionFactory, uow: Optional[SqlUnitOfWork] = None):
        super().__init__(session_factory, DeliveryData, uow)

    async def find_by_id(self, id: int) -> Optional[DeliveryData]:
        return await self.get_by_id(id)

    async def find_by_user_id(self, user_id: int) -> Optional[DeliveryData]:
        return await self.find_one(user_id=user_id)
