"""
Configuration management.
Simple .env based config for the offline sync worker.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Local worker API (host UI talks to this)
    host: str = "127.0.0.1"
    port: int = 8765

    # Local offline store
    database_path: str = "./data/offline.db"

    # Remote sync server
    api_url: str = "http://localhost:3001"
    auth_token: str = ""
    user_id: str = ""
    request_timeout: float = 60.0  # seconds
    connect_timeout: float = 10.0  # seconds

    # Logging
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
