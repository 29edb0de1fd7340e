"""
app/schemas/orders.py

Request bodies for website orders and shopkeeper orders.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.models.order import OrderStatus, PaymentMethod, PaymentStatus, WebsiteOrderStatus
from app.schemas.base import CamelModel


# ============================================================
# WEBSITE ORDERS
# ============================================================

class WebsiteOrderCreate(CamelModel):
    customer_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    items: List[Dict[str, Any]] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    notes: Optional[str] = None


class WebsiteOrderStatusUpdate(CamelModel):
    status: WebsiteOrderStatus


class WebsiteOrderUpdate(CamelModel):
    customer_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    items: Optional[List[Dict[str, Any]]] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    status: Optional[WebsiteOrderStatus] = None


# ============================================================
# SHOPKEEPER ORDERS
# ============================================================

class OrderItemRequest(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    custom_price: Optional[float] = Field(default=None, ge=0)


class ShopkeeperOrderCreate(CamelModel):
    items: List[OrderItemRequest] = Field(default_factory=list)
    shopkeeper_id: Optional[str] = None
    amount_paid: float = Field(default=0, ge=0)
    delivery_address: str = ""
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH

    @field_validator("amount_paid", mode="before")
    @classmethod
    def coerce_amount_paid(cls, v):
        """Blank or missing amounts count as nothing paid."""
        if v in (None, ""):
            return 0
        return v


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    notes: Optional[str] = None


class OrderPaymentUpdate(CamelModel):
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    amount_paid: Optional[float] = Field(default=None, ge=0)
