"""Order data models"""
from decimal import Decimal
from sqlmodel import Field
from .base import BaseModel
from ..enum import OrderStatus


class Order(BaseModel, table=True):
    """Order header table

    ``user_id`` and ``total_amount`` never change after creation.
    """

    __tablename__ = "orders"

    user_id: int = Field(foreign_key="users.id", index=True)
    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    delivery_address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=1000)


class OrderItem(BaseModel, table=True):
    """Order line item table

    ``price`` is the product price at the time the order was placed.
    """

    __tablename__ = "order_items"

    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    quantity: int = Field(ge=1)
    price: Decimal = Field(max_digits=10, decimal_places=2)
