"""
                Pizza Storefront

Online ordering storefront for a pizza shop: menu browsing, cart,
delivery / pick-up / dine-in selection, checkout and order tracking, on
top of a hosted Supabase project with a mock mode for local development.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
