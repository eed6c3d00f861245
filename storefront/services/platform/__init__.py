"""
Data Platform Factory

Provides a single entry point for obtaining a data platform client.
The factory pattern lets the rest of the application stay agnostic about
which implementation is being used.

Usage:
    from storefront.services.platform import get_data_platform

    # Returns MockDataPlatform or SupabaseDataPlatform based on ENV_MODE
    platform = get_data_platform()

    items = await platform.list_menu_items()

Environment Switching:
    - ENV_MODE=development → MockDataPlatform (seeded, in-memory)
    - ENV_MODE=staging → SupabaseDataPlatform (staging project)
    - ENV_MODE=production → SupabaseDataPlatform (live project)
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.platform.base import (
    BaseDataPlatform,
    attach_variants,
    parse_records,
)
from storefront.services.platform.mock import MockDataPlatform
from storefront.services.platform.supabase import SupabaseDataPlatform

logger = logging.getLogger(__name__)


@lru_cache()
def get_data_platform() -> BaseDataPlatform:
    """
    Get the configured data platform instance.

    The instance is cached so every request shares one HTTP connection pool
    (and, in development, one in-memory order book).

    Returns:
        BaseDataPlatform: Configured data platform client

    Raises:
        ValueError: If production mode but Supabase is not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Data Platform: Using MockDataPlatform (development mode)")
        return MockDataPlatform(min_latency=0.05, max_latency=0.2)

    logger.info(
        f"Data Platform: Using SupabaseDataPlatform "
        f"({settings.env_mode.value} mode)"
    )
    return SupabaseDataPlatform()


def reset_data_platform() -> None:
    """
    Clear the cached data platform instance.

    The next call to get_data_platform() will create a new instance.
    """
    get_data_platform.cache_clear()
    logger.debug("Data platform cache cleared")


__all__ = [
    "get_data_platform",
    "reset_data_platform",
    "BaseDataPlatform",
    "MockDataPlatform",
    "SupabaseDataPlatform",
    "attach_variants",
    "parse_records",
]
