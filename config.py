"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs are composed into AppSettings by a model_validator so every
section reads from the same env/dotenv source.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Redis is the only store; every link, counter and marker lives in it
    redis_uri: str = "redis://localhost:6379/0"


class LinkSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    link_code_length: int = 6
    link_code_attempts: int = 5
    max_stats_days: int = 90


class SafetySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    safe_browsing_api_key: str = ""
    safe_browsing_url: str = (
        "https://safebrowsing.googleapis.com/v4/threatMatches:find"
    )
    safe_browsing_timeout_seconds: float = 5.0
    report_daily_limit: int = 10


class ExternalServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    qr_timeout_seconds: float = 3.0
    metadata_timeout_seconds: float = 3.0


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_redirect: float = 0.05
    sample_rate_stats: float = 0.20
    sample_rate_export: float = 0.80


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "https://snap.link"
    app_name: str = "snaplink"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    redis: Optional[RedisSettings] = None
    links: Optional[LinkSettings] = None
    safety: Optional[SafetySettings] = None
    services: Optional[ExternalServiceSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.redis is None:
            self.redis = RedisSettings()
        if self.links is None:
            self.links = LinkSettings()
        if self.safety is None:
            self.safety = SafetySettings()
        if self.services is None:
            self.services = ExternalServiceSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def app_host(self) -> str:
        """Host part of app_url; links pointing back at it are refused."""
        return self.app_url.split("://", 1)[-1].split("/", 1)[0].lower()
