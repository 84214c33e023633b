"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB (no default: the app refuses to start without it)
    mongodb_uri: str
    mongodb_db: str = "internship_portal"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # CORS (comma-separated list of origins)
    cors_origins: str = ""

    # SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_email: str = ""
    smtp_password: str = ""

    # Uploads
    upload_dir: str = "uploads/resumes"
    max_upload_mb: int = 5

    # Rate limiting (per client IP)
    rate_limit: str = "100/15 minutes"
    rate_limit_enabled: bool = True

    # App
    port: int = 5000
    log_level: str = "INFO"
    debug: bool = False

    @property
    def cors_origin_list(self) -> List[str]:
        """Parse CORS_ORIGINS into a clean list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_email and self.smtp_password)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency - the settings the running app was built with."""
    return request.app.state.settings
