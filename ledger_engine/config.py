"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    service_name: str = "ledger-engine"
    log_level: str = "INFO"

    # Currency
    currency_code: str = "UGX"
    currency_exponent: int = 0  # UGX has no minor unit in practice

    # Scheduling
    default_reminder_days: int = 3
    max_occurrences: int = 10
    occurrence_generation_limit: int = 12

    # Aggregate cache
    aggregate_cache_ttl_seconds: float = 900.0  # 15 minutes


settings = Settings()
