from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class PricingSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    database_url: str
    log_level: str = "info"
    log_cache_loggers: bool = True
    tracing_enabled: bool = True
    statement_timeout_ms: int = 5000

    max_stay_nights: int = 365


SETTINGS = PricingSettings()
