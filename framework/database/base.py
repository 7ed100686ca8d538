from abc import ABC, abstractmethod

class BaseDatabaseDriver(ABC):
    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def disconnect(self):
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Cheap liveness probe used by the health endpoint."""
        pass
