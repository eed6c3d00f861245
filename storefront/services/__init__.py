"""
                        Services Module

Business logic of the storefront. External systems follow the hybrid
pattern: each has a Mock (development) and a Supabase (production)
implementation behind a cached factory.

Services:
    - platform: catalog and order storage on the hosted data platform
    - auth: identity provider (sign-in, sign-up, profile metadata)
    - catalog: category and menu helpers
    - checkout: totals, delivery charge and checkout guards
    - recommendations: meal-completion suggestions for the cart
    - orders: order placement and history
    - profile: profile, onboarding and delivery address updates
"""

from storefront.services.auth import get_auth_provider, reset_auth_provider
from storefront.services.checkout import CheckoutSummary, evaluate_checkout
from storefront.services.platform import get_data_platform, reset_data_platform

__all__ = [
    "get_auth_provider",
    "reset_auth_provider",
    "get_data_platform",
    "reset_data_platform",
    "CheckoutSummary",
    "evaluate_checkout",
]
