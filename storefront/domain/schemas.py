# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.limits import MIN_QUANTITY, MAX_QUANTITY, MIN_SIZE, MAX_SIZE


class AddToCartIn(BaseModel):
    """Request body for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    size: int = Field(..., ge=MIN_SIZE, le=MAX_SIZE, description=f"Shoe size {MIN_SIZE}-{MAX_SIZE}")
    quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY, description=f"Quantity {MIN_QUANTITY}-{MAX_QUANTITY}")


class CartItemOut(BaseModel):
    id: int
    user_id: int
    product_id: int
    product_name: str | None = None
    unit_price: Decimal | None = None
    size: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    """Cart of one user with a display subtotal (prices may change until checkout)."""

    user_id: int
    items: List[CartItemOut]
    subtotal: Decimal


class UserCreate(BaseModel):
    id: int = Field(..., gt=0, description="User ID (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="User name")
    is_admin: bool = False


class UserRead(BaseModel):
    id: int
    name: str
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    """Request body for checkout. Blank values are rejected by the service."""

    shipping_address: str = Field(..., max_length=500)
    phone_number: str = Field(..., max_length=32)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    size: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: str
    total: Decimal
    shipping_address: str
    phone_number: str
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)
