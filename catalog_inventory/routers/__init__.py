"""
Routers for the catalog inventory service
"""

from .inventory import router as inventory_router
from .reports import router as reports_router

__all__ = ["inventory_router", "reports_router"]
