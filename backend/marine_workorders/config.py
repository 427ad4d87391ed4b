"""Application configuration using Pydantic Settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Tenant scope for every store path and blob key
    tenant_id: str = "default"

    # Realtime store
    store_backend: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "marine-workorders"
    redis_reconnect_max_wait: float = 30.0

    # Retries for second-phase store writes
    store_retry_attempts: int = 3
    store_retry_max_wait: float = 2.0

    # AWS / S3
    storage_backend: str = "memory"  # memory | s3
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_endpoint_url: Optional[str] = None
    s3_bucket: str = "marine-workorder-photos"
    public_base_url: Optional[str] = None

    # Photos
    photo_max_bytes: int = 20 * 1024 * 1024
    photo_cache_control: str = "public,max-age=31536000"

    # Kanban board
    board_default_note: str = "moved via board"
    board_pending_move_ttl_seconds: int = 900

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
