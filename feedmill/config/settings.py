"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "feedmill.db"

    # SQLite settings
    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms, lock-wait limit before BusyError

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class PlanningSettings(BaseSettings):
    """Reorder point and safety stock configuration."""

    model_config = SettingsConfigDict(env_prefix="PLANNING_")

    # Average daily usage looks back this many days
    usage_window_days: int = Field(default=30, ge=1)

    # Statistical safety stock needs this much history; otherwise the
    # fallback of min_stock * fallback_min_stock_ratio applies
    min_outbound_transactions: int = Field(default=20, ge=1)
    sample_window_days: int = Field(default=60, ge=2)
    min_usage_samples: int = Field(default=30, ge=2)
    service_level: float = Field(default=0.95, gt=0, lt=1)
    fallback_min_stock_ratio: float = Field(default=0.5, ge=0)

    # Extra cover for late supplier deliveries, in days of usage
    supplier_delay_days: float = Field(default=2.0, ge=0)

    # Alert thresholds
    warning_days: int = Field(default=7, ge=0)
    expiry_warning_days: int = Field(default=30, ge=0)


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    reload: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Feedmill Stock Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # "auto": console renderer in development, JSON lines elsewhere
    log_format: Literal["auto", "console", "json"] = "auto"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    planning: PlanningSettings = Field(default_factory=PlanningSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
