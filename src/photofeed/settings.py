"""Application settings and environment configuration."""

from typing import Optional
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "photofeed"
    debug: bool = False
    environment: str = "dev"  # 'dev' or 'prod'
    log_level: str = "INFO"

    # CompanyCam
    companycam_api_key: Optional[str] = None
    companycam_api_base_url: str = "https://api.companycam.com/v2"
    request_timeout_seconds: float = 30.0
    # Upper bound for one full gallery aggregation, fan-out included.
    pipeline_timeout_seconds: float = 120.0
    response_cache_ttl_seconds: int = 3600
    # Concurrent upstream requests during photo/tag fan-out.
    tag_fetch_workers: int = 8
    upstream_page_size: int = 100
    max_upstream_pages: int = 50
    # The /tags vocabulary listing is diagnostic only; keep it short.
    tag_list_max_pages: int = 10

    # Gallery feed
    default_page_size: int = 50
    photos_rate_limit: str = "120/minute"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_workers: int = 1

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "dev"

    @property
    def has_photo_service_credentials(self) -> bool:
        return bool((self.companycam_api_key or "").strip())

    def config_audit(self) -> dict:
        """Return effective configuration for display, with the credential masked."""
        key = (self.companycam_api_key or "").strip()
        masked_key = f"{key[:4]}...{key[-2:]}" if len(key) > 8 else ("***" if key else None)
        return {
            "environment": self.environment,
            "companycam_api_base_url": self.companycam_api_base_url,
            "companycam_api_key": masked_key,
            "request_timeout_seconds": self.request_timeout_seconds,
            "pipeline_timeout_seconds": self.pipeline_timeout_seconds,
            "response_cache_ttl_seconds": self.response_cache_ttl_seconds,
            "tag_fetch_workers": self.tag_fetch_workers,
            "upstream_page_size": self.upstream_page_size,
            "max_upstream_pages": self.max_upstream_pages,
            "default_page_size": self.default_page_size,
        }


settings = Settings()
