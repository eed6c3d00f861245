"""
Routers mounted by ``storefront.main``.

    - api: JSON API under /api
    - pages: server-rendered pages and form actions
"""

from storefront.routes import api, pages

__all__ = ["api", "pages"]
