from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./skein.db"

    # JWT Authentication
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 8 * 60

    # Password hashing
    SALT_BYTES: int = 128

    # Server
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Feeds
    FEED_RETENTION_DAYS: int = 30

    # CORS, comma separated
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra='ignore', frozen=True)

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide settings once; callers receive them explicitly."""
    return Settings()
