"""
app/models/recovery.py

Purpose: Recovery document enums

- A recovery is a payment collected from a shopkeeper by a salesman,
  optionally settled partly in goods
"""

from enum import Enum


class RecoveryType(str, Enum):
    PAYMENT_ONLY = "payment_only"
    PAYMENT_WITH_ITEMS = "payment_with_items"


class RecoveryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
