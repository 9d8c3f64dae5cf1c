"""Catalog schemas for API input/output"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator


class CreateProductRequest(BaseModel):
    """Create product request"""

    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = Field(None, ge=1)
    in_stock: bool = True


class UpdateProductRequest(BaseModel):
    """Product patch; only the fields that are sent are applied"""

    model_config = ConfigDict(extra='forbid')

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = Field(None, ge=1)
    in_stock: Optional[bool] = None

    @model_validator(mode='after')
    def required_fields_not_null(self) -> 'UpdateProductRequest':
        for name in ('name', 'price', 'in_stock'):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ProductOut(BaseModel):
    """Product output schema"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal
    description: Optional[str] = None
    category_id: Optional[int] = None
    in_stock: bool
    created_at: datetime
    updated_at: datetime


class CategoryOut(BaseModel):
    """Category output schema"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
