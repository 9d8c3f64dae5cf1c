"""Business logic services"""
from .auth_service import AuthService
from .catalog_service import CatalogService
from .order_service import OrderService

__all__ = [
    "AuthService",
    "CatalogService",
    "OrderService",
]
