"""
mentorhub Backend Core Configuration

This module manages all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

import json
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = ""

    # Security (tokens are issued by the auth provider, only verified here)
    jwt_secret_key: str = Field(
        default="dev-only-secret-key-change-me-0123456789", min_length=32
    )
    jwt_algorithm: str = "HS256"

    # Document store
    store_provider: Literal["FIRESTORE", "MEMORY"] = "MEMORY"
    firebase_project_id: Optional[str] = None
    firebase_credentials_path: Optional[str] = None

    # Push delivery
    push_provider: Literal["FCM", "MOCK"] = "MOCK"
    notification_body_limit: int = 50

    # Write fan-out
    batch_chunk_size: int = Field(default=400, ge=1, le=500)
    profile_lookup_page_size: int = Field(default=10, ge=1, le=30)

    # Change-feed webhook
    event_webhook_secret: Optional[str] = None

    # Cleanup retry queue (RQ)
    redis_url: str = "redis://localhost:6379/0"
    cleanup_queue_enabled: bool = False
    cleanup_queue_name: str = "cleanup"
    worker_job_timeout: int = 600
    worker_result_ttl: int = 3600

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8081",
        "http://localhost:19006",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        """Parse CORS origins from string, list, or JSON string"""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [v]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.env == "production"

    @property
    def use_mock_push(self) -> bool:
        return self.push_provider == "MOCK"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache for singleton pattern.
    """
    return Settings()


settings = get_settings()
