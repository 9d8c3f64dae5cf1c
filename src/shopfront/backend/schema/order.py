"""Order-related schemas for API input/output"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from ..enum import OrderStatus


PHONE_PATTERN = r'^\+?[0-9\s\-()]{10,20}$'


# ==================== Input Schemas ====================

class OrderItemIn(BaseModel):
    """Requested order line"""

    product_id: int = Field(..., ge=1, description="Product ID")
    quantity: int = Field(..., ge=1, description="Quantity (at least 1)")


class CreateOrderRequest(BaseModel):
    """Create order request"""

    items: list[OrderItemIn] = Field(..., min_length=1, description="Order lines")
    delivery_address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateOrderRequest(BaseModel):
    """Order patch; only the fields that are sent are applied"""

    model_config = ConfigDict(extra='forbid')

    status: Optional[OrderStatus] = None
    delivery_address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode='after')
    def status_not_null(self) -> 'UpdateOrderRequest':
        if 'status' in self.model_fields_set and self.status is None:
            raise ValueError("status cannot be null")
        return self


# ==================== Output Schemas ====================

class OrderOut(BaseModel):
    """Order output schema"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    delivery_address: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderItemOut(BaseModel):
    """Order line with the product it refers to"""

    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    product_name: Optional[str] = None
    product_description: Optional[str] = None


class OrderWithItemsOut(OrderOut):
    """Order together with its lines (returned on creation)"""

    items: list[OrderItemOut]


class AdminOrderOut(OrderOut):
    """Order joined with its owner's identity"""

    username: str
    email: str
