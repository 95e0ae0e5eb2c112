from datetime import date
from functools import lru_cache
from typing import Optional
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App Settings
    APP_NAME: str = "Retailer Ledger API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    # CORS - accepts JSON string or list
    CORS_ORIGINS: list[str] = ["*"]

    # Store
    SEED_DEMO_DATA: bool = True  # Start with the demo retailers and ledger
    API_LATENCY_MS: int = 0  # Simulated delay per store call, 0 disables

    # Pin "today" for dashboard stats (e.g. 2023-10-27 to match the demo data)
    DASHBOARD_TODAY: Optional[date] = None

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
