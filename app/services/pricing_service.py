"""
app/services/pricing_service.py

Purpose: Order arithmetic

- Line pricing with optional custom unit prices
- Salesman commission
- Payment status and outstanding amount from a partial payment
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.models.order import PaymentStatus


def unit_price(catalog_price: float, custom_price: Optional[float]) -> float:
    """A custom price of zero is honoured; only a missing one falls back."""
    return float(custom_price) if custom_price is not None else float(catalog_price or 0)


def price_line(product: Dict[str, Any], quantity: int, custom_price: Optional[float] = None) -> Dict[str, Any]:
    """Builds an order line for a loaded product document."""
    price = unit_price(product.get("price", 0), custom_price)
    return {
        "product": product["_id"],
        "quantity": quantity,
        "unitPrice": price,
        "totalPrice": price * quantity,
    }


def order_total(lines: Iterable[Dict[str, Any]]) -> float:
    return sum(line["totalPrice"] for line in lines)


def compute_commission(total_amount: float, commission_rate: Optional[float], default_rate: float) -> float:
    """
    Commission earned on an order.

    A salesman without a configured rate (missing or zero) earns the
    default rate.
    """
    rate = commission_rate or default_rate
    return total_amount * rate / 100


def payment_status_for(total_amount: float, amount_paid: float) -> PaymentStatus:
    if amount_paid >= total_amount:
        return PaymentStatus.PAID
    if amount_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def payment_breakdown(total_amount: float, amount_paid: float) -> Tuple[float, PaymentStatus]:
    """
    Splits an order total into what is still owed and its payment status.

    An overpayment leaves a negative outstanding amount, which reduces the
    shopkeeper's running balance.
    """
    pending = total_amount - amount_paid
    return pending, payment_status_for(total_amount, amount_paid)


def items_value(items: List[Dict[str, Any]]) -> float:
    """Value of goods returned in a recovery (quantity x unitPrice)."""
    return sum(item["quantity"] * item["unitPrice"] for item in items)
