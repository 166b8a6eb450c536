"""
Alumni Registry Application Configuration

Configuration management with environment variable support.
Cache namespace sizing and expiry windows are tunable per deployment.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(
        default="json", description="Log renderer: json or console"
    )

    # API configuration
    API_HOST: str = Field(default="0.0.0.0", description="API server host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="API server port")

    # OpenTelemetry configuration
    OTEL_SERVICE_NAME: str = Field(
        default="alumni-registry-api", description="OpenTelemetry service name"
    )

    # Cache maintenance
    CACHE_SWEEP_INTERVAL_SECONDS: int = Field(
        default=300, ge=1, le=86400, description="Interval between dead-entry sweeps"
    )
    CACHE_WARMUP_INTERVAL_SECONDS: int = Field(
        default=1800,
        ge=0,
        le=86400,
        description="Interval between critical-data preloads (0 disables)",
    )
    CACHE_DEDUPLICATE_MISSES: bool = Field(
        default=True,
        description="Concurrent cold misses for one key share a single producer call",
    )

    # Namespace: users (authentication lookups keyed by email)
    CACHE_USERS_TTL_SECONDS: int = Field(default=900, ge=1)
    CACHE_USERS_STALE_SECONDS: int = Field(default=300, ge=0)
    CACHE_USERS_MAX_ENTRIES: int = Field(default=1000, ge=1)

    # Namespace: students (detail and list pages)
    CACHE_STUDENTS_TTL_SECONDS: int = Field(default=600, ge=1)
    CACHE_STUDENTS_STALE_SECONDS: int = Field(default=180, ge=0)
    CACHE_STUDENTS_MAX_ENTRIES: int = Field(default=100, ge=1)

    # Namespace: dashboard (aggregate statistics)
    CACHE_DASHBOARD_TTL_SECONDS: int = Field(default=1800, ge=1)
    CACHE_DASHBOARD_STALE_SECONDS: int = Field(default=600, ge=0)
    CACHE_DASHBOARD_MAX_ENTRIES: int = Field(default=50, ge=1)

    # Namespace: audit (audit log statistics)
    CACHE_AUDIT_TTL_SECONDS: int = Field(default=1200, ge=1)
    CACHE_AUDIT_STALE_SECONDS: int = Field(default=300, ge=0)
    CACHE_AUDIT_MAX_ENTRIES: int = Field(default=100, ge=1)

    # Namespace: academic (faculties, departments, academic years)
    CACHE_ACADEMIC_TTL_SECONDS: int = Field(default=3600, ge=1)
    CACHE_ACADEMIC_STALE_SECONDS: int = Field(default=1800, ge=0)
    CACHE_ACADEMIC_MAX_ENTRIES: int = Field(default=50, ge=1)

    # Namespace: verify (public certificate verification results)
    CACHE_VERIFY_TTL_SECONDS: int = Field(default=60, ge=1)
    CACHE_VERIFY_STALE_SECONDS: int = Field(default=0, ge=0)
    CACHE_VERIFY_MAX_ENTRIES: int = Field(default=1000, ge=1)

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log renderer name."""
        if v.lower() not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v.lower()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
