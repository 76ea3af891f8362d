"""
Configuration settings for the Verdica API service.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    app_name: str = "Verdica API"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 4000

    # Database
    database_url: str = "sqlite:///./verdica.db"

    # Trial Configuration
    judge_panel_size: int = 3  # Judges drawn per trial (fewer if pool is smaller)

    # CORS
    allowed_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "VERDICA_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
