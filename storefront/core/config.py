"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two families of modes:
    - DEVELOPMENT: In-memory data platform, auth provider and state slots
    - STAGING / PRODUCTION: Supabase (PostgREST + GoTrue) and Redis slots

The ENV_MODE variable controls which services are instantiated throughout
the application, so the storefront can be run locally with no external
accounts and switched to the hosted platform by configuration alone.

Usage:
    from storefront.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Seeded mock catalog
    else:
        # Hosted data platform
"""

import logging
import sys
from decimal import Decimal
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local run with mock services and in-memory state
        PRODUCTION: Live environment backed by the hosted data platform
        STAGING: Pre-production run against a staging project
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Only the Supabase anon key belongs here; the service key never does.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Hosted data platform
        supabase_url: Project URL (https://<ref>.supabase.co)
        supabase_anon_key: Public API key sent with every request
        http_timeout_seconds: Timeout applied to every platform call

        # Visitor state
        redis_url: Redis connection string for persisted cart/selection slots
        state_ttl_seconds: How long an idle visitor's slots survive
        session_cookie_name: Cookie carrying the visitor session id
        max_sessions: In-memory session cap (LRU)

        # Business rules
        minimum_order_amount: Minimum subtotal for delivery orders
        delivery_charge: Flat delivery surcharge
        free_delivery_zone: Zone for which the surcharge is waived
        delivery_zones: Comma-separated list of served zones
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Pizza Storefront",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )

    # ==========================================================================
    # HOSTED DATA PLATFORM (SUPABASE)
    # ==========================================================================

    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL"
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anon (public) API key"
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for data platform and auth calls"
    )

    # ==========================================================================
    # VISITOR STATE
    # ==========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for persisted visitor state"
    )
    state_ttl_seconds: int = Field(
        default=60 * 60 * 24 * 30,
        description="Lifetime of persisted cart/selection slots"
    )
    session_cookie_name: str = Field(
        default="storefront_session",
        description="Cookie that carries the visitor session id"
    )
    max_sessions: int = Field(
        default=10_000,
        ge=1,
        description="Visitor sessions kept in process memory before the least recently used is dropped"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    currency_symbol: str = Field(
        default="₹",
        description="Symbol shown next to prices"
    )
    minimum_order_amount: Decimal = Field(
        default=Decimal("200"),
        ge=0,
        description="Minimum subtotal for delivery orders"
    )
    delivery_charge: Decimal = Field(
        default=Decimal("30"),
        ge=0,
        description="Flat delivery surcharge"
    )
    free_delivery_zone: str = Field(
        default="Madhuban",
        description="Delivery zone for which the surcharge is waived"
    )
    delivery_zones: str = Field(
        default="Madhuban,Talimpur,Dihutola,Gangapur,Bajitpur,pakariya,Bahuaara",
        description="Comma-separated list of served delivery zones"
    )
    display_timezone: str = Field(
        default="Asia/Kolkata",
        description="Timezone used when rendering order timestamps"
    )
    recommendation_limit: int = Field(
        default=4,
        ge=0,
        description="Maximum number of cart recommendations"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def is_staging(self) -> bool:
        """Check if running in staging mode."""
        return self.env_mode == EnvironmentMode.STAGING

    @property
    def use_real_services(self) -> bool:
        """Check if the hosted platform should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def delivery_zones_list(self) -> list[str]:
        """Get delivery zones as a list, in configured order."""
        return [z.strip() for z in self.delivery_zones.split(",") if z.strip()]

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.supabase_url:
                missing.append("SUPABASE_URL")
            if not self.supabase_anon_key:
                missing.append("SUPABASE_ANON_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; call ``get_settings.cache_clear()``
    after changing the environment (tests do this).

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("storefront")

