"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        app_name: Name of the application.
        debug: Enable debug mode.
        database_url: Database connection URL.
        import_batch_size: Rows persisted per import transaction.
        import_batch_timeout_seconds: Upper bound for a single batch write.
        import_max_upload_mb: Largest accepted upload.
        legacy_encoding: Code page of the semicolon/comma policy exports.
        repair_zero_date_parts: Turn "00" day/month into "01" instead of dropping the date.
        correction_ratio_threshold: Gross/net ratio above which a premium is suspicious.
        correction_absolute_threshold: Gross premium above which a policy without
            a net premium is reported.
        correction_divisor: Factor removed from an inflated gross premium.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "acente-crm"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Database
    database_url: str = "sqlite:///./acente_crm.db"

    # CORS (dashboard frontend)
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Import pipeline
    import_batch_size: int = Field(100, ge=1, le=1000)
    import_batch_timeout_seconds: float = 30.0
    import_max_upload_mb: int = 50
    legacy_encoding: str = "cp1254"
    repair_zero_date_parts: bool = True

    # Premium correction maintenance
    correction_ratio_threshold: float = 5.0
    correction_absolute_threshold: float = 10000.0
    correction_divisor: int = 10


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings.
    """
    return Settings()
