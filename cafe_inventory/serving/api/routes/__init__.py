"""
API Routes Module
"""
from .health import router as health_router
from .inventory import router as inventory_router
from .sales import router as sales_router
from .shopping import router as shopping_router
from .notifications import router as notifications_router

__all__ = [
    "health_router",
    "inventory_router",
    "sales_router",
    "shopping_router",
    "notifications_router",
]
