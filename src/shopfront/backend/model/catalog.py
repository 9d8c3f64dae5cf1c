"""Catalog data models"""
from decimal import Decimal
from sqlmodel import Field
from .base import BaseModel


class Category(BaseModel, table=True):
    """Product category table"""

    __tablename__ = "categories"

    name: str = Field(max_length=100, unique=True)
    description: str | None = Field(default=None, max_length=500)


class Product(BaseModel, table=True):
    """Product table

    ``in_stock`` is an availability flag, not a counted quantity.
    """

    __tablename__ = "products"

    name: str = Field(max_length=100, unique=True, index=True)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    description: str | None = Field(default=None, max_length=1000)
    category_id: int | None = Field(default=None, foreign_key="categories.id", index=True)
    in_stock: bool = Field(default=True)
