"""
app/models/order.py

Purpose: Order document enums

- Website (public customer) order statuses
- Shopkeeper order statuses, payment statuses and payment methods
- Who placed a shopkeeper order
"""

from enum import Enum


class WebsiteOrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


class PlacedBy(str, Enum):
    SHOPKEEPER = "shopkeeper"
    SALESMAN = "salesman"
