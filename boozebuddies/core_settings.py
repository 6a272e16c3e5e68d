from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "boozebuddies"
    POSTGRES_USER: str = "boozebuddies"
    POSTGRES_PASSWORD: str = "boozebuddies"
    # Full SQLAlchemy URL, wins over the POSTGRES_* parts when set
    DATABASE_URL: Optional[str] = None

    SERVICE_NAME: str = "order-delivery-service"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS_ON_STARTUP: bool = True

    DEFAULT_PAYMENT_METHOD: str = "test_payment"
    # ETA heuristic for drivers: urban average speed plus a fixed pickup buffer
    AVERAGE_SPEED_KMH: float = 30.0
    PICKUP_BUFFER_MINUTES: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
