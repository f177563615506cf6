"""
Numbering Service - human-readable document codes

Each document kind owns one row in ``document_counters``. The row is locked
and incremented inside the caller's transaction, so two concurrent creations
can never read the same value. A counter that does not exist yet is seeded
from the number of documents already stored for that kind, which keeps codes
continuous with data created before the counter existed.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from dentalcare.core.config import settings
from dentalcare.models import (
    DocumentCounter, BillingInvoice, InventoryOrder, Expense, Payment,
    InsuranceClaim, Staff, Prescription, InventoryItem
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeFormat:
    prefix: str
    width: int
    model: type
    field: str
    dated: bool = False  # prefix is followed by YYYYMM


CODE_FORMATS = {
    "invoice": CodeFormat("INV", 4, BillingInvoice, "invoice_number", dated=True),
    "inventory_order": CodeFormat("PO", 4, InventoryOrder, "order_number", dated=True),
    "expense": CodeFormat("EXP-", 6, Expense, "expense_id"),
    "payment": CodeFormat("PAY-", 6, Payment, "payment_id"),
    "insurance_claim": CodeFormat("CLM-", 6, InsuranceClaim, "claim_id"),
    "staff": CodeFormat("EMP", 5, Staff, "employee_id"),
    "prescription": CodeFormat("RX", 6, Prescription, "prescription_number"),
    "inventory_item": CodeFormat("SKU", 6, InventoryItem, "sku"),
}


def clinic_now() -> datetime:
    return datetime.now(timezone.utc).astimezone(ZoneInfo(settings.CLINIC_TIMEZONE))


def format_code(kind: str, sequence: int, when: Optional[datetime] = None) -> str:
    """
    Render a code for ``kind``.

    >>> format_code("invoice", 4, datetime(2024, 3, 9))
    'INV2024030004'
    >>> format_code("expense", 42)
    'EXP-000042'
    """
    fmt = CODE_FORMATS.get(kind)
    if fmt is None:
        raise ValueError(f"Unknown document kind: {kind}")
    if sequence < 1:
        raise ValueError("sequence starts at 1")
    period = ""
    if fmt.dated:
        when = when or clinic_now()
        period = f"{when.year}{when.month:02d}"
    return f"{fmt.prefix}{period}{sequence:0{fmt.width}d}"


class NumberingService:
    def __init__(self, db: Session):
        self.db = db

    def _check_kind(self, kind: str):
        if kind not in CODE_FORMATS:
            logger.warning(f"Refused to number unknown document kind {kind!r}")
            raise ValueError(f"Unknown document kind: {kind}")

    def _existing_count(self, kind: str) -> int:
        fmt = CODE_FORMATS[kind]
        return self.db.query(func.count(fmt.model.id)).scalar() or 0

    def _counter(self, kind: str) -> DocumentCounter:
        counter = self.db.query(DocumentCounter).filter(
            DocumentCounter.kind == kind
        ).with_for_update().first()

        if counter is None:
            seed = self._existing_count(kind)
            counter = DocumentCounter(kind=kind, last_value=seed)
            self.db.add(counter)
            self.db.flush()
            logger.info(f"Seeded '{kind}' counter at {seed}")
        return counter

    def ensure_counters(self):
        """Create missing counters up front so first use never races on the insert"""
        for kind in CODE_FORMATS:
            self._counter(kind)

    def peek(self, kind: str, when: Optional[datetime] = None) -> str:
        """The code the next document would get; nothing is reserved"""
        self._check_kind(kind)
        counter = self.db.query(DocumentCounter).filter(DocumentCounter.kind == kind).first()
        current = counter.last_value if counter else self._existing_count(kind)
        return format_code(kind, current + 1, when)

    def next_code(self, kind: str, when: Optional[datetime] = None) -> str:
        self._check_kind(kind)
        counter = self._counter(kind)
        counter.last_value += 1
        self.db.flush()
        code = format_code(kind, counter.last_value, when)
        logger.info(f"Assigned {kind} code {code}")
        return code

    def assign(self, document, kind: str, when: Optional[datetime] = None) -> str:
        """Give ``document`` a code unless it already has one; codes never change"""
        field = CODE_FORMATS[kind].field
        existing = getattr(document, field, None)
        if existing:
            return existing
        code = self.next_code(kind, when)
        setattr(document, field, code)
        return code
