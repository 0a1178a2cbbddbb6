# nestqueue/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    APP_NAME: str = "NestQueue API"
    APP_DESC: str = "IT support tickets backed by MongoDB"
    APP_VERSION: str = "1.0.0"

    # Document store
    MONGO_URI: str = Field(default="mongodb://localhost:27017")
    MONGO_DATABASE: str = "nq_tickets"
    MONGO_COLLECTION: str = "tickets"
    STORE_TIMEOUT_SECONDS: float = 8.0
    CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s %(message)s"

    # CORS origins, comma separated
    CORS_ORIGINS: str = "*"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
