"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Store Configuration
    store_backend: str = Field(
        default="memory",
        description="Persistence backend for areas and measurements (memory or http)"
    )
    backend_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the REST backend used by the http store"
    )
    backend_api_key: str = Field(
        default="",
        description="Bearer token sent to the REST backend"
    )
    backend_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for REST backend calls"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for backend calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )
    area_id_max_attempts: int = Field(
        default=3,
        description="Attempts at generating a unique area id before giving up"
    )

    # Measurement Planning Parameters
    plan_small_area_threshold_m: float = Field(
        default=30.0,
        description="Largest bounding-box side (m) below which an area counts as small"
    )
    plan_small_spacing_m: float = Field(
        default=7.0,
        description="Grid spacing in meters for small areas"
    )
    plan_large_spacing_m: float = Field(
        default=12.0,
        description="Grid spacing in meters for large areas"
    )
    plan_max_points: int = Field(
        default=50,
        description="Maximum number of planned measurement points per area"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Soil Area Measurement Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
