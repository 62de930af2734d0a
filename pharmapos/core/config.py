# pharmapos/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./database.sqlite"
    SQLITE_BUSY_TIMEOUT: float = 15.0

    # CORS (the desktop shell serves the UI from the dev server)
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    SALES_RATE_LIMIT: str = "60/minute"
    EXPORT_RATE_LIMIT: str = "10/minute"

    # Inventory
    LOW_STOCK_THRESHOLD: int = 10

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
