"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_BASE_PATH = Path(os.environ.get(
    "LABRECON_BASE_PATH",
    Path.home() / "Documents" / "labrecon",
))
ENV_FILE_PATH = APP_BASE_PATH / ".env"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = Field(default="development")
    app_log_level: str = Field(default="INFO")

    # Payable-to-bank matching
    identifier_anchor_length: int = Field(default=20)
    value_date_window_days: int = Field(default=3)
    value_date_min_confidence: int = Field(default=50)
    name_anchor_length: int = Field(default=10)
    name_value_tolerance: float = Field(default=0.05)
    name_date_penalty_cap_days: int = Field(default=10)
    max_candidates_per_payable: int = Field(default=3)
    unmatched_min_confidence: int = Field(default=60)

    # Confidence bands
    confidence_high: int = Field(default=85)
    confidence_medium: int = Field(default=70)
    confidence_low: int = Field(default=50)

    # Duplicate classification
    duplicate_value_tolerance: float = Field(default=0.01)
    duplicate_date_window_days: int = Field(default=5)
    duplicate_low_value_tolerance: float = Field(default=0.05)
    duplicate_name_similarity: float = Field(default=0.5)

    # LIS reconciliation
    lis_date_tolerance_days: int = Field(default=1)

    # Lookup adapters
    lookup_retry_attempts: int = Field(default=3)
    lookup_retry_max_wait_seconds: float = Field(default=10.0)

    # Storage
    reports_dir: Path = Field(default=Path("./data/reports"))

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
