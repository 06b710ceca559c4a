"""Application configuration from environment variables."""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./village_invoices.db",
        description="SQLAlchemy async connection string",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Server log file path")

    # Invoice engine
    max_meter_value: int = Field(
        default=999999,
        description="Largest value a utility meter displays before rolling over to 0",
    )
    default_page_size: int = Field(default=50, description="Summary rows per page by default")
    max_page_size: int = Field(default=200, description="Upper bound for summary page size")

    # API
    api_title: str = Field(default="Village Invoices API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")


# Global settings instance
settings = Settings()
