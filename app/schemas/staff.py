"""
app/schemas/staff.py

Request bodies for salesman work: assignments, distribution and sales.
"""

from typing import List, Optional

from pydantic import Field

from app.models.distribution import DistributionStatus
from app.models.order import PaymentMethod
from app.schemas.base import CamelModel


class AssignmentCreate(CamelModel):
    salesman_id: str
    shopkeeper_id: str
    notes: Optional[str] = None


class AssignmentUpdate(CamelModel):
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class DistributionItem(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class DistributionCreate(CamelModel):
    salesman_id: str
    items: List[DistributionItem] = Field(..., min_length=1)
    notes: Optional[str] = None


class DistributionStatusUpdate(CamelModel):
    status: DistributionStatus
    notes: Optional[str] = None


class SaleItem(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    unit_price: Optional[float] = Field(default=None, ge=0)


class SaleCreate(CamelModel):
    shopkeeper_id: Optional[str] = None
    items: List[SaleItem] = Field(..., min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None
