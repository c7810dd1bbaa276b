"""Application configuration using Pydantic Settings."""

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="development", description="Environment: development, stage, prod")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )

    # Scene detection
    chars_per_page: int = Field(default=2000, gt=0, description="Characters per estimated page")
    context_before_chars: int = Field(
        default=150, ge=0, description="Context window before the cursor"
    )
    context_after_chars: int = Field(
        default=200, ge=0, description="Context window after the cursor"
    )
    selection_context_chars: int = Field(
        default=200, ge=0, description="Context taken before an active selection"
    )

    # Insertion
    heading_lookback_chars: int = Field(
        default=100, ge=0, description="Characters searched for a heading before the cursor"
    )

    # Validation
    min_content_lines: int = Field(default=3, ge=3, description="Hard minimum lines per scene")
    max_content_lines: int = Field(default=50, ge=1, description="Soft maximum lines per scene")
    max_requested_scenes: int = Field(default=3, ge=1, description="Scenes per generation request")
    total_lines_tolerance: int = Field(
        default=0, ge=0, description="Allowed difference between totalLines and actual lines"
    )

    # Prompts / LLM
    prompts_path: str | None = Field(
        default=None, description="Prompt YAML path (bundled config/prompts/prompts.yaml if unset)"
    )
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    llm_max_tokens: int = Field(default=4000, gt=0, description="Maximum tokens per generation")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            value = v.strip()
            if not value:
                return []
            if value.startswith("["):
                parsed = json.loads(value)
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON value must be a list")
                return [str(origin).strip() for origin in parsed if str(origin).strip()]
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(v, list):
            return [str(origin).strip() for origin in v if str(origin).strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env in {"prod", "production"}

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == "development"

    @model_validator(mode="after")
    def validate_line_bounds(self) -> "Settings":
        """Keep the content-line bounds consistent."""
        if self.max_content_lines < self.min_content_lines:
            raise ValueError("MAX_CONTENT_LINES must not be below MIN_CONTENT_LINES")
        if self.is_production and self.debug:
            raise ValueError("DEBUG must be false in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
