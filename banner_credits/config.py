"""
Application Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Critical config is validated at startup.
"""

import sys
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Ledger backend - "memory" keeps balances in-process (local development only)
    ledger_backend: Literal["postgres", "memory"] = "postgres"

    # Database Configuration - NO DEFAULT for production safety
    database_url: str = ""
    database_pool_size: int = 25
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    run_migrations_on_startup: bool = False

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_title: str = "Banner Credits API"
    api_version: str = "0.1.0"
    api_description: str = "Credit-metered generation gateway for the banner editor"
    cors_origins: str = "*"  # Comma-separated list

    @property
    def allowed_cors_origins(self) -> list[str]:
        """Get list of allowed CORS origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "banner-credits-api"

    # Generation Provider - Gemini
    gemini_api_key: str = ""
    image_model: str = "gemini-2.5-flash-image"
    prompt_model: str = "gemini-3-flash-preview"
    image_aspect_ratio: str = "16:9"
    provider_timeout_seconds: float = 60.0

    # Payment Processor - PayPal
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_environment: Literal["sandbox", "production"] = "sandbox"
    paypal_timeout_seconds: float = 15.0
    subscription_price: str = "20.00"
    subscription_currency: str = "USD"
    subscription_description: str = "Premium Banner Creator Subscription (1 Month)"

    # Credit Configuration
    signup_credits: int = 5  # Free generations for new accounts
    subscription_bonus_credits: int = 100
    generation_cost: int = 1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        The app MUST NOT start if critical config is missing.
        This prevents silent failures that only manifest at runtime.
        """
        errors: list[str] = []

        # DATABASE_URL is required unless balances live in memory
        if self.ledger_backend == "postgres":
            if not self.database_url:
                errors.append("DATABASE_URL is required but empty or missing")
            elif not self.database_url.startswith(("postgresql", "postgres")):
                errors.append(
                    f"DATABASE_URL must be a PostgreSQL URL, got: {self.database_url[:20]}..."
                )

        if self.signup_credits < 0:
            errors.append(f"SIGNUP_CREDITS cannot be negative, got: {self.signup_credits}")
        if self.subscription_bonus_credits <= 0:
            errors.append("SUBSCRIPTION_BONUS_CREDITS must be positive")
        if self.generation_cost <= 0:
            errors.append("GENERATION_COST must be positive")

        # If we have errors, fail immediately with clear messaging
        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - APPLICATION CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self

    @property
    def paypal_api_url(self) -> str:
        """PayPal REST base URL for the configured environment."""
        if self.paypal_environment == "production":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    @property
    def paypal_configured(self) -> bool:
        """True when PayPal credentials are present."""
        return bool(self.paypal_client_id and self.paypal_client_secret)


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
