"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from backend.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @app.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Resolver tuning values
    config = ResolverConfig.from_settings(get_settings())
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.core.config import DEFAULT_PLACEHOLDER_ASSET, validate_tier_constants

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "shared/dictionaries/exercise_catalog.yaml"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR",
    )

    # -------------------------------------------------------------------------
    # Supabase Database
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access)",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous key (limited access)",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Get the best available Supabase key (service role preferred)."""
        return self.supabase_service_role_key or self.supabase_anon_key

    # -------------------------------------------------------------------------
    # Exercise Catalog
    # -------------------------------------------------------------------------
    catalog_source: str = Field(
        default="yaml",
        description="Where the exercise asset catalog is loaded from: yaml or supabase",
    )
    catalog_path: str = Field(
        default=str(DEFAULT_CATALOG_PATH),
        description="YAML catalog file used when catalog_source is yaml",
    )
    catalog_table: str = Field(
        default="exercises",
        description="Supabase table used when catalog_source is supabase",
    )
    catalog_limit: int = Field(
        default=2000,
        ge=1,
        description="Maximum number of catalog rows loaded from Supabase",
    )

    # -------------------------------------------------------------------------
    # Matching Tiers
    # -------------------------------------------------------------------------
    fuzzy_accept_threshold: float = Field(
        default=0.80,
        description="Minimum similarity accepted by the fuzzy tier",
    )
    semantic_accept_threshold: float = Field(
        default=0.60,
        description="Minimum similarity accepted by the hint-filtered semantic tier",
    )
    semantic_confidence_penalty: float = Field(
        default=0.85,
        description="Multiplier applied to semantic similarity to get confidence",
    )
    classification_confidence: float = Field(
        default=0.40,
        description="Confidence of a movement-category representative",
    )
    generated_confidence: float = Field(
        default=0.10,
        description="Confidence of a generated placeholder",
    )
    placeholder_asset_url: str = Field(
        default=DEFAULT_PLACEHOLDER_ASSET,
        description="Placeholder visual; {category} is replaced by the movement category",
    )

    # -------------------------------------------------------------------------
    # Result Cache
    # -------------------------------------------------------------------------
    cache_max_size: int = Field(
        default=500,
        ge=1,
        description="Maximum number of cached match results (LRU)",
    )
    cache_ttl_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Optional time-to-live for cached results",
    )

    # -------------------------------------------------------------------------
    # Batch Preloading
    # -------------------------------------------------------------------------
    max_concurrency: int = Field(
        default=8,
        ge=1,
        description="Concurrent resolutions per batch",
    )
    item_timeout_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Soft deadline for a single exercise in a batch",
    )
    batch_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Hard wall-clock deadline for a whole batch",
    )

    # -------------------------------------------------------------------------
    # Asset Validation
    # -------------------------------------------------------------------------
    validate_assets: bool = Field(
        default=False,
        description="Confirm catalog assets respond before returning them",
    )
    asset_check_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="HTTP timeout for an asset HEAD request",
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    cors_allowed_origins: str = Field(
        default="",
        description="Comma-separated extra CORS origins (production web apps)",
    )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level '{v}'")
        return level

    @field_validator("catalog_source")
    @classmethod
    def validate_catalog_source(cls, v: str) -> str:
        valid_sources = {"yaml", "supabase"}
        if v.lower() not in valid_sources:
            raise ValueError(
                f"Invalid catalog_source '{v}'. Must be one of: {valid_sources}"
            )
        return v.lower()

    @model_validator(mode="after")
    def validate_tier_ordering(self) -> "Settings":
        """Confidence must not increase as matching falls through the tiers."""
        validate_tier_constants(
            self.fuzzy_accept_threshold,
            self.semantic_accept_threshold,
            self.semantic_confidence_penalty,
            self.classification_confidence,
            self.generated_confidence,
        )
        return self

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
