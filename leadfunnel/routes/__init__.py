# leadfunnel/routes/__init__.py
"""
API route handlers organized by domain.
"""

from leadfunnel.routes.health import router as health_router
from leadfunnel.routes.leads import router as leads_router
from leadfunnel.routes.site import router as site_router

__all__ = [
    "health_router",
    "leads_router",
    "site_router",
]
