"""Short-lived key/value store for verification codes."""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from framework.exceptions.errors import StorageError
from framework.logging.logger import get_logger

logger = get_logger("code_store")


class CodeStore(ABC):
    @abstractmethod
    async def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


class RedisCodeStore(CodeStore):
    def __init__(self, client: redis.Redis):
        self.client = client

    async def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        try:
            await self.client.set(key, value, ex=seconds)
        except redis.RedisError as e:
            logger.opt(exception=e).error(f"Redis SET {key} failed")
            raise StorageError("Code store write failed", cause=e) from e

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except redis.RedisError as e:
            logger.opt(exception=e).error(f"Redis GET {key} failed")
            raise StorageError("Code store read failed", cause=e) from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except redis.RedisError as e:
            logger.opt(exception=e).error(f"Redis DEL {key} failed")
            raise StorageError("Code store delete failed", cause=e) from e


class InMemoryCodeStore(CodeStore):
    """Development store; entries expire lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + seconds)

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
