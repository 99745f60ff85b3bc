"""
Core configuration settings for the application.
"""
import json
from typing import List, Union
from pydantic import Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # FastAPI Configuration
    project_name: str = Field(default="EA FC Proclubs API", description="Project name")
    version: str = Field(default="1.0.0", description="API version reported by the root endpoint")
    api_prefix: str = Field(default="/api", description="Prefix for all API routers")
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL, used to build checkout success/cancel URLs"
    )
    environment: str = Field(default="dev", description="Environment (dev, staging, production)")
    debug: bool = Field(default=False, description="Debug mode - set True only for local development")

    # CORS Configuration
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string (JSON) or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except (json.JSONDecodeError, ValueError):
                return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    # Tier Rate Limits (requests per window)
    rate_limit_free: int = Field(default=10, ge=1, description="Free tier requests per window")
    rate_limit_basic: int = Field(default=100, ge=1, description="Basic tier requests per window")
    rate_limit_premium: int = Field(default=1000, ge=1, description="Premium tier requests per window")
    rate_limit_window_ms: int = Field(default=60 * 1000, ge=1, description="Fixed window length for every tier")

    # Anonymous endpoints (key issuance, checkout) are limited per IP by slowapi
    public_rate_limit: str = Field(default="20/minute", description="slowapi limit for public endpoints (process-wide)")
    public_rate_limit_enabled: bool = Field(default=True, description="Toggle slowapi on public endpoints (process-wide)")

    # Stripe Configuration
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")

    @property
    def is_production_environment(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ["production", "prod"]

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
