"""
app/schemas/recoveries.py

Request bodies for recoveries and receipts.
"""

from typing import List, Optional

from pydantic import Field, model_validator

from app.models.order import PaymentMethod
from app.models.receipt import ReceiptStatus, ReceiptType
from app.models.recovery import RecoveryStatus, RecoveryType
from app.schemas.base import CamelModel


class RecoveryItem(CamelModel):
    product: str
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)


class BankDetails(CamelModel):
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    reference: Optional[str] = None


class RecoveryCreate(CamelModel):
    shopkeeper_id: str
    recovery_type: RecoveryType = RecoveryType.PAYMENT_ONLY
    amount_collected: float = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: List[RecoveryItem] = Field(default_factory=list)
    notes: Optional[str] = None
    recovery_location: Optional[str] = None
    bank_details: Optional[BankDetails] = None

    @model_validator(mode="after")
    def check_items(self):
        if self.recovery_type == RecoveryType.PAYMENT_WITH_ITEMS and not self.items:
            raise ValueError("Items are required for payment_with_items recoveries")
        return self


class RecoveryUpdate(CamelModel):
    notes: Optional[str] = None
    status: Optional[RecoveryStatus] = None


class ReceiptCreate(CamelModel):
    receipt_type: ReceiptType
    order_id: Optional[str] = None
    recovery_id: Optional[str] = None
    receipt_content: str = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_source(self):
        if self.receipt_type == ReceiptType.ORDER and not self.order_id:
            raise ValueError("orderId is required for order receipts")
        if self.receipt_type == ReceiptType.RECOVERY and not self.recovery_id:
            raise ValueError("recoveryId is required for recovery receipts")
        return self


class ReceiptStatusUpdate(CamelModel):
    status: ReceiptStatus
