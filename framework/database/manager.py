from .mysql_driver import MySQLDriver
from .redis_driver import RedisDriver

class DatabaseManager:
    """Process-wide holder of the MySQL and Redis drivers."""
    _instance = None

    def __init__(self, settings):
        self.mysql = MySQLDriver(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            echo=settings.DB_ECHO,
        )
        self.redis = RedisDriver(settings.REDIS_URL)

    @classmethod
    def get_instance(cls, settings=None):
        if cls._instance is None:
            if settings is None:
                from framework.config import settings as app_settings
                settings = app_settings
            cls._instance = cls(settings)
        return cls._instance

    async def connect(self):
        await self.mysql.connect()
        await self.redis.connect()

    async def disconnect(self):
        await self.redis.disconnect()
        await self.mysql.disconnect()
