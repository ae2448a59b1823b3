"""Configuration management using pydantic-settings."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

API_KEY_PATTERN = re.compile(r"^(sg_|SG_)[a-zA-Z0-9]{12,}$")

MiB = 1024 * 1024


class Settings(BaseSettings):
    """Segmind MCP Server settings.

    All settings can be configured via environment variables with SEGMIND_ prefix.
    Example: SEGMIND_API_KEY, SEGMIND_OUTPUT_DIR, etc.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEGMIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required to run the server, optional so tools like read_local_image work in tests
    api_key: str | None = None

    # API Configuration
    base_url: str = "https://api.segmind.com/v1"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    sanitize_logs: bool = True
    debug: bool = False

    # Output
    output_dir: str | None = None

    # HTTP Client Configuration
    request_timeout: float = Field(default=120.0, gt=0)  # seconds
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)  # seconds
    retry_max_delay: float = Field(default=10.0, ge=0)  # seconds

    # Polling Configuration (async jobs)
    poll_interval: float = Field(default=5.0, ge=0)  # seconds
    poll_max_attempts: int = Field(default=60, ge=1)  # 5 minutes

    # Input limits
    max_transform_image_bytes: int = 10 * MiB
    max_enhance_image_bytes: int = 20 * MiB

    # Image reference cache
    cache_ttl: float = 15 * 60  # seconds
    cache_max_entries: int = Field(default=10, ge=1)

    # Cost tracking
    cost_data_path: str = ".segmind-cost-data.json"

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        value = value.strip()
        if not API_KEY_PATTERN.match(value):
            raise ValueError("Invalid Segmind API key format (expected sg_...)")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.upper()
            return "WARNING" if value == "WARN" else value
        return value

    @property
    def masked_api_key(self) -> str:
        return mask_api_key(self.api_key)


def mask_api_key(api_key: str | None) -> str:
    """Render an API key safe for diagnostics (sg_abc...wxyz)."""
    if not api_key or len(api_key) < 10:
        return "[INVALID]"
    return f"{api_key[:6]}...{api_key[-4:]}"


@lru_cache
def get_settings() -> Settings:
    """Load settings once, raising ConfigurationError when validation fails."""
    try:
        return Settings()
    except ValidationError as e:
        issues = ", ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Configuration validation failed: {issues}") from e


def reset_settings() -> None:
    """Drop the cached settings (tests only)."""
    get_settings.cache_clear()
