"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from backend.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @router.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Direct access (module-level)
    settings = get_settings()
    print(settings.similar_master_threshold)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Development-only fallback; refused when environment is production
DEFAULT_JWT_SECRET = "exercise-identity-jwt-secret-change-in-production"


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
        description="Runtime environment: development, staging, production, test",
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
    # Authentication
    # -------------------------------------------------------------------------
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Shared secret for HS256 bearer tokens",
    )
    api_keys: str = Field(
        default="",
        description="Comma-separated list of valid API keys",
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse API keys into a list."""
        return [k.strip() for k in self.api_keys.split(",") if k.strip()]

    # -------------------------------------------------------------------------
    # Exercise Identity
    # -------------------------------------------------------------------------
    similar_master_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Default minimum score for similar master lookups",
    )
    bulk_link_min_similarity: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Default minimum score for bulk linking",
    )
    search_page_size: int = Field(
        default=20,
        ge=1,
        description="Default page size for master exercise search",
    )
    search_max_page_size: int = Field(
        default=50,
        ge=1,
        description="Largest page size a caller may request",
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

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

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """The default page size may not exceed the maximum."""
        if self.search_page_size > self.search_max_page_size:
            raise ValueError(
                f"search_page_size ({self.search_page_size}) exceeds "
                f"search_max_page_size ({self.search_max_page_size})"
            )
        return self

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Production must configure its own JWT secret."""
        if self.environment == "production" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in production")
        return self

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


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
