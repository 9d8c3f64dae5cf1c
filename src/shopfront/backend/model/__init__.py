"""Data models"""
from .base import BaseModel
from .user import User
from .catalog import Category, Product
from .order import Order, OrderItem

__all__ = [
    "BaseModel",
    "User",
    "Category",
    "Product",
    "Order",
    "OrderItem",
]
