from typing import Optional
from urllib.parse import quote_plus
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Basic configuration ---
    APP_NAME: str = "Gimme Backend"
    APP_DESCRIPTION: str = "User registration, social login and email verification service"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"  # development, production, testing
    DEBUG: bool = True
    SECRET_KEY: str = "your-super-secret-key-change-it-in-production"

    # --- Storage backend ---
    STORAGE_BACKEND: str = "sql"  # sql, memory

    # --- Database (MySQL/SQLModel) ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_NAME: str = "app_db"

    # Pool knobs; pooling itself is SQLAlchemy's
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 95
    DB_POOL_TIMEOUT: int = 8
    DB_POOL_RECYCLE: int = 1800
    DB_ECHO: bool = False

    @property
    def DATABASE_URL(self) -> str:
        # Build async MySQL connection URL
        safe_password = quote_plus(self.DB_PASSWORD)
        return f"mysql+aiomysql://{self.DB_USER}:{safe_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # --- Ephemeral code store (Redis) ---
    CODE_STORE_DRIVER: str = "redis"  # redis, memory
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # --- Email verification ---
    VERIFICATION_CODE_TTL_SECONDS: int = 300
    VERIFICATION_KEY_PREFIX: str = "verification"

    # --- Notification service ---
    NOTIFICATION_DRIVER: str = "mock"  # mock, email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    # --- OAuth (Kakao) ---
    KAKAO_CLIENT_ID: str = ""
    KAKAO_REDIRECT_URI: str = ""
    OAUTH_HTTP_TIMEOUT: float = 10.0

    # --- JWT ---
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # --- Cookie ---
    ACCESS_TOKEN_COOKIE_NAME: str = "access_token"
    COOKIE_SECURE: bool = False  # Set True in production (HTTPS only)
    COOKIE_SAMESITE: str = "lax"  # lax, strict, none

    # --- Logging ---
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    # --- API route prefixes ---
    API_V1_AUTH_PREFIX: str = "/api/v1/auth"
    API_V1_USERS_PREFIX: str = "/api/v1/users"

    # --- Gunicorn ---
    GUNICORN_BIND: str = "0.0.0.0:8000"
    GUNICORN_WORKERS: int = 2  # each worker opens its own pool (DB_POOL_SIZE + DB_MAX_OVERFLOW)
    GUNICORN_PROC_NAME: Optional[str] = None  # Fallback to APP_NAME when empty

    # --- Pydantic ---
    # Load env from project root .env; priority: env vars > .env > defaults
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )


# Singleton settings instance
settings = Settings()
