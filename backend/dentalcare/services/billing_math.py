"""
Billing Math - line items, totals and payment status for financial documents
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from dentalcare.models import PaymentStatus

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

# Spellings still sent by older clients, mapped to the canonical status
LEGACY_PAYMENT_STATUS = {
    "partially-paid": PaymentStatus.PARTIAL,
    "partially_paid": PaymentStatus.PARTIAL,
    "unpaid": PaymentStatus.PENDING,
}

# Statuses set by explicit business actions, never by derivation
EXTERNAL_STATUSES = {PaymentStatus.OVERDUE, PaymentStatus.CANCELLED}


def to_decimal(value, field: str = "amount") -> Decimal:
    """Parse a monetary value; None means zero, anything non-numeric is an error"""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number")
    return result


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    description: Optional[str]
    quantity: int
    unit_price: Decimal
    total: Decimal


def price_line(quantity, unit_price, description: Optional[str] = None,
               require_description: bool = False) -> PricedLine:
    if require_description and not (description or "").strip():
        raise ValueError("Line item description is required")
    qty_value = to_decimal(quantity, "quantity")
    if qty_value != qty_value.to_integral_value():
        raise ValueError(f"quantity must be a whole number, got {quantity!r}")
    qty = int(qty_value)
    if qty < 1:
        raise ValueError(f"quantity must be at least 1, got {qty}")
    price = to_decimal(unit_price, "unit_price")
    if price < 0:
        raise ValueError(f"unit_price cannot be negative, got {price}")
    price = money(price)
    return PricedLine(
        description=description,
        quantity=qty,
        unit_price=price,
        total=money(qty * price),
    )


def aggregate_line_items(items: Iterable, require_description: bool = False) -> Tuple[List[PricedLine], Decimal]:
    """
    Price every line and sum them.

    Items are anything exposing ``quantity`` and ``unit_price`` (and optionally
    ``description``): request schemas, ORM rows or plain dicts. Input order is
    preserved. An empty sequence gives a subtotal of zero.
    """
    lines = []
    for item in items or []:
        if isinstance(item, dict):
            quantity, unit_price = item.get("quantity"), item.get("unit_price")
            description = item.get("description")
        else:
            quantity, unit_price = item.quantity, item.unit_price
            description = getattr(item, "description", None)
        lines.append(price_line(quantity, unit_price, description, require_description))

    subtotal = money(sum((line.total for line in lines), ZERO))
    return lines, subtotal


def compute_total(subtotal, tax=None, discount=None) -> Decimal:
    """total = max(0, subtotal + tax - discount); an oversized discount is absorbed"""
    subtotal = to_decimal(subtotal, "subtotal")
    tax = to_decimal(tax, "tax")
    discount = to_decimal(discount, "discount")
    if tax < 0:
        raise ValueError("tax cannot be negative")
    if discount < 0:
        raise ValueError("discount cannot be negative")
    return money(max(ZERO, subtotal + tax - discount))


def parse_payment_status(value) -> PaymentStatus:
    """Canonical status for a wire value, accepting legacy spellings"""
    if isinstance(value, PaymentStatus):
        return value
    raw = str(value or "").strip().lower()
    if raw in LEGACY_PAYMENT_STATUS:
        return LEGACY_PAYMENT_STATUS[raw]
    try:
        return PaymentStatus(raw)
    except ValueError:
        raise ValueError(f"Unknown payment status: {value!r}")


def derive_payment_status(paid_amount, total, current=None) -> Tuple[PaymentStatus, Decimal]:
    """
    Map (paid_amount, total) to a status and the normalised paid amount.

    Overpayment is clamped to the total. A cancelled document stays cancelled;
    an overdue one stays overdue until it is fully paid.
    """
    paid = money(paid_amount)
    total = money(total)
    if paid < 0:
        raise ValueError("paid_amount cannot be negative")

    if paid > total:
        paid = total
    if paid <= 0:
        derived = PaymentStatus.PENDING
    elif paid < total:
        derived = PaymentStatus.PARTIAL
    else:
        derived = PaymentStatus.PAID

    current = parse_payment_status(current) if current is not None else None
    if current == PaymentStatus.CANCELLED:
        return current, paid
    if current == PaymentStatus.OVERDUE and derived != PaymentStatus.PAID:
        return current, paid
    return derived, paid


def balance_due(total, paid_amount) -> Decimal:
    return money(max(ZERO, to_decimal(total) - to_decimal(paid_amount)))
