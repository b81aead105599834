"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./funds.db"
    AUTO_CREATE_TABLES: bool = True
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ======================
    # Upstream open data (data.gov.il)
    # ======================
    DATA_GOV_BASE_URL: str = "https://data.gov.il"
    DATA_GOV_PAGE_SIZE: int = 1000
    DATA_GOV_TIMEOUT_SECONDS: float = 30.0

    # ======================
    # Scheduler / ingestion
    # ======================
    SCHEDULER_ENABLED: bool = True
    INGESTION_ON_STARTUP: bool = True
    INGESTION_CRON_HOUR: int = 0
    INGESTION_CRON_MINUTE: int = 0
    TIMEZONE: str = "Asia/Jerusalem"

    # ======================
    # Search
    # ======================
    SEARCH_RESULT_LIMIT: int = 15

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
