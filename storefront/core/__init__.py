"""
Core module initialization.
Exports configuration, logging utilities and the exception hierarchy.
"""

from storefront.core.config import get_settings, Settings, EnvironmentMode
from storefront.core.exceptions import (
    StorefrontError,
    PlatformError,
    AuthRequiredError,
    InvalidSelectionError,
    CheckoutBlockedError,
    EmptyCartError,
    OrderInFlightError,
    NotFoundError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "StorefrontError",
    "PlatformError",
    "AuthRequiredError",
    "InvalidSelectionError",
    "CheckoutBlockedError",
    "EmptyCartError",
    "OrderInFlightError",
    "NotFoundError",
]
