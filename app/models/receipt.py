"""
app/models/receipt.py

Purpose: Receipt document model

- Printed receipt for an order or a recovery
- Receipt number format: ORD|REC + YYMMDD + 4-digit sequence
"""

from datetime import datetime
from enum import Enum

from utils.time_utils import receipt_date_stamp


class ReceiptType(str, Enum):
    ORDER = "order"
    RECOVERY = "recovery"


class ReceiptStatus(str, Enum):
    GENERATED = "generated"
    PRINTED = "printed"
    CANCELLED = "cancelled"


RECEIPT_PREFIXES = {
    ReceiptType.ORDER: "ORD",
    ReceiptType.RECOVERY: "REC",
}


def format_receipt_number(receipt_type: ReceiptType, issued_at: datetime, sequence: int) -> str:
    """
    Formats a receipt number, e.g. ORD2410170042.

    Sequences above 9999 keep growing in width rather than wrapping.
    """
    prefix = RECEIPT_PREFIXES[ReceiptType(receipt_type)]
    return f"{prefix}{receipt_date_stamp(issued_at)}{sequence:04d}"
