"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Resolver settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="SCREENSPEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Caching
    style_cache_size: int = Field(default=256, gt=0, description="Resolved style cache size")
    expression_cache_size: int = Field(
        default=512, gt=0, description="Compiled expression cache size"
    )

    # Documents
    max_document_size: int = Field(
        default=1024 * 1024, gt=0, description="Max document size in bytes"
    )
    max_document_depth: int = Field(default=64, gt=0, description="Max JSON nesting depth")

    # Transport
    base_url: str = Field(default="", description="Base URL for relative request urls")
    request_timeout: float = Field(default=10.0, gt=0, description="Request timeout (seconds)")
    breaker_fail_max: int = Field(default=5, gt=0, description="Failures before breaker opens")
    breaker_reset_timeout: int = Field(
        default=30, gt=0, description="Seconds before an open breaker retries"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
