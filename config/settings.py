"""
Configuration management for the study schedule API.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Study Schedule API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Schedule cache
    cache_enabled: bool = True
    cache_ttl_seconds: int = 120
    cache_max_entries: int = 256

    # Range handling: when true, an end date before the start date is
    # moved to start + 6 days instead of being rejected
    clamp_inverted_range: bool = False

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
