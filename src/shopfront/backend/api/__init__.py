"""
API package for REST endpoints.
"""

from .auth import router as auth_router
from .catalog import router as catalog_router
from .order import router as order_router
from .user import router as user_router

__all__ = [
    "auth_router",
    "catalog_router",
    "order_router",
    "user_router",
]
