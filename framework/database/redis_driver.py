import redis.asyncio as redis
from .base import BaseDatabaseDriver

class RedisDriver(BaseDatabaseDriver):
    def __init__(self, url: str):
        self.url = url
        self.client = None

    async def connect(self):
        self.client = redis.from_url(self.url, decode_responses=True)

    async def disconnect(self):
        if self.client:
            await self.client.aclose()
            self.client = None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    def get_client(self):
        return self.client
