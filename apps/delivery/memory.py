from typing import Optional

from framework.logging.logger import get_logger
from framework.repository.unit_of_work import InMemoryUnitOfWork, UnitOfWork
from apps.users.memory import InMemoryUserStore, copy_entity
from apps.users.models import DeliveryData
from .repository import DeliveryRepository

logger = get_logger("delivery_repository.memory")


class InMemoryDeliveryRepository(DeliveryRepository):
    """Reads delivery rows from the shared user store, so deleting a user drops its address too."""

    def __init__(self, store: InMemoryUserStore, uow: Optional[InMemoryUnitOfWork] = None):
        self.store = store
        self.uow = uow

    def with_transaction(self, uow: UnitOfWork) -> Optional["InMemoryDeliveryRepository"]:
        if not isinstance(uow, InMemoryUnitOfWork):
            logger.warning(f"InMemoryDeliveryRepository cannot join foreign unit of work {uow!r}")
            return None
        return InMemoryDeliveryRepository(self.store, uow)

    async def find_by_id(self, id: int) -> Optional[DeliveryData]:
        if self.uow is not None:
            self.uow.ensure_active()
        with self.store.lock:
            delivery = next((d for d in self.store.deliveries.values() if d.id == id), None)
            return copy_entity(delivery) if delivery is not None else None

    async def find_by_user_id(self, user_id: int) -> Optional[DeliveryData]:
        if self.uow is not None:
            self.uow.ensure_active()
        with self.store.lock:
            delivery = self.store.deliveries.get(user_id)
            return copy_entity(delivery) if delivery is not None else None
