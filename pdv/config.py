"""PDV Backend — Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/pdv.sqlite3"

    # Sales rules
    PRICE_TOLERANCE: float = 0.01
    DECREMENT_STOCK_ON_SALE: bool = True

    # Pagination
    PAGE_DEFAULT_LIMIT: int = 20
    PAGE_MAX_LIMIT: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
