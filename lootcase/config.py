"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Ledger
    STARTING_BALANCE: int = 10000  # smallest currency unit (100.00)
    MAX_CONFLICT_RETRIES: int = 3

    # Catalog import on startup (empty catalog only)
    CATALOG_PATH: Optional[str] = None

    # Header carrying the identity resolved by the upstream auth layer
    USER_ID_HEADER: str = "X-User-Id"


settings = Settings()
