"""
Storefront exceptions.

Every failure the storefront reports to a visitor is a subclass of
StorefrontError, so routes and the exception handlers in ``main`` can turn
them into a short message without inspecting the cause.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PlatformError(StorefrontError):
    """A data platform call failed or returned something unusable."""

    status_code = 502

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class AuthRequiredError(StorefrontError):
    """The operation needs a signed-in user."""

    status_code = 401


class InvalidSelectionError(StorefrontError):
    """The order selection change would break its invariants."""


class CheckoutBlockedError(StorefrontError):
    """A checkout guard rejected the order before it left the process."""


class EmptyCartError(StorefrontError):
    """An order was requested with nothing in the cart."""


class OrderInFlightError(StorefrontError):
    """An order for this session is already being placed."""

    status_code = 409


class NotFoundError(StorefrontError):
    """A menu item, variant or order the visitor referred to does not exist."""

    status_code = 404
