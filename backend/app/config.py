from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "DB-IP Threat Level Service"
    service_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Logging
    log_dir: str = ""  # Empty means console-only logging
    log_json: bool = False  # Enable JSON logging for production
    enable_request_logging: bool = True

    # Upstream (db-ip.com)
    upstream_base_url: str = "https://db-ip.com"
    upstream_timeout_seconds: float = 15.0

    # In-memory threat level cache
    cache_ttl_seconds: int = 1800  # 30 minutes
    cache_sweep_interval_seconds: int = 300  # 5 minutes

    # Access gate
    required_user_agent_token: str = "ipmap"
    ip_query_param: str = "db-ip"

    # Diagnostics attached to upstream extraction failures
    body_preview_chars: int = 1000
    debug_preview_chars: int = 200

    # CORS (comma-separated origins)
    cors_origins: str = "*"

    # Rate limiting (inbound)
    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins"""
        return [origin.strip() for origin in self.cors_origins.split(',') if origin.strip()]

    @field_validator('upstream_base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip('/')

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
