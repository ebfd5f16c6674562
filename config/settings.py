"""
Server settings loaded from environment variables and .env file
"""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCORECARD_",
        case_sensitive=False,
    )

    # Storage
    data_dir: str = "data"
    upload_dir: str = "uploads"

    # Trend / comparison defaults
    default_trend_months: int = 12
    default_comparison_months: int = 6
    comparison_workers: int = 4

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @property
    def upload_path(self) -> Path:
        return Path(self.upload_dir)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
