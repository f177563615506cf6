"""
Financial document normalisation

Every billing-like document goes through ``prepare`` right before it is
flushed: the code is assigned if missing, line totals, subtotal and total are
recomputed, and the payment status is derived from the paid amount. Callers
run it inside the request's session and commit only afterwards, so a failure
in any step leaves nothing behind.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from dentalcare.models import BillingInvoice, Expense, InventoryOrder, LabWork, PaymentStatus
from dentalcare.services.billing_math import (
    PricedLine, aggregate_line_items, compute_total, derive_payment_status, money
)
from dentalcare.services.numbering import NumberingService


@dataclass
class FinancialInput:
    """Raw fields of a document, as stored or as received"""
    items: Optional[Sequence] = None  # None: not an itemised document
    amount: Optional[Decimal] = None  # total of a non-itemised document
    tax: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    status: Optional[str] = None
    derive_status: bool = True
    require_descriptions: bool = False


@dataclass(frozen=True)
class FinancialTotals:
    lines: List[PricedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    status: Optional[PaymentStatus] = None


def normalize(doc: FinancialInput) -> FinancialTotals:
    """Pure recomputation of every derived field; idempotent on its own output"""
    if doc.items is not None:
        lines, subtotal = aggregate_line_items(doc.items, require_description=doc.require_descriptions)
    else:
        lines, subtotal = [], money(doc.amount)
        if subtotal < 0:
            raise ValueError("amount cannot be negative")

    total = compute_total(subtotal, doc.tax, doc.discount)

    status, paid = None, money(doc.paid_amount)
    if doc.derive_status:
        status, paid = derive_payment_status(doc.paid_amount, total, doc.status)

    return FinancialTotals(
        lines=lines,
        subtotal=subtotal,
        tax=money(doc.tax),
        discount=money(doc.discount),
        total=total,
        paid_amount=paid,
        status=status,
    )


# ---- per-document adapters -------------------------------------------------

def _invoice_input(invoice: BillingInvoice) -> FinancialInput:
    return FinancialInput(
        items=list(invoice.items),
        tax=invoice.tax,
        discount=invoice.discount,
        paid_amount=invoice.paid_amount,
        status=invoice.status,
        require_descriptions=True,
    )


def _apply_invoice(invoice: BillingInvoice, totals: FinancialTotals):
    for position, (item, line) in enumerate(zip(invoice.items, totals.lines)):
        item.position = position
        item.quantity = line.quantity
        item.unit_price = line.unit_price
        item.total = line.total
    invoice.subtotal = totals.subtotal
    invoice.tax = totals.tax
    invoice.discount = totals.discount
    invoice.total = totals.total
    invoice.paid_amount = totals.paid_amount
    invoice.status = totals.status.value


def _expense_input(expense: Expense) -> FinancialInput:
    return FinancialInput(
        amount=expense.amount,
        paid_amount=expense.paid_amount,
        status=expense.payment_status,
    )


def _apply_expense(expense: Expense, totals: FinancialTotals):
    expense.amount = totals.total
    expense.paid_amount = totals.paid_amount
    expense.payment_status = totals.status.value


def _order_input(order: InventoryOrder) -> FinancialInput:
    return FinancialInput(
        items=[
            {"quantity": it.quantity, "unit_price": it.unit_cost, "description": it.name}
            for it in order.items
        ],
        derive_status=False,
    )


def _apply_order(order: InventoryOrder, totals: FinancialTotals):
    for position, (item, line) in enumerate(zip(order.items, totals.lines)):
        item.position = position
        item.quantity = line.quantity
        item.unit_cost = line.unit_price
        item.total = line.total
    order.subtotal = totals.subtotal


def _lab_work_input(lab: LabWork) -> FinancialInput:
    return FinancialInput(
        amount=lab.cost,
        paid_amount=lab.paid_amount,
        status=lab.payment_status,
    )


def _apply_lab_work(lab: LabWork, totals: FinancialTotals):
    lab.cost = totals.total
    lab.paid_amount = totals.paid_amount
    lab.payment_status = totals.status.value


@dataclass(frozen=True)
class _Hook:
    kind: Optional[str]  # numbering kind, None when the document has no code
    snapshot: Callable
    apply: Callable


HOOKS: Dict[type, _Hook] = {
    BillingInvoice: _Hook("invoice", _invoice_input, _apply_invoice),
    Expense: _Hook("expense", _expense_input, _apply_expense),
    InventoryOrder: _Hook("inventory_order", _order_input, _apply_order),
    LabWork: _Hook(None, _lab_work_input, _apply_lab_work),
}


def prepare(db: Session, document) -> FinancialTotals:
    """Assign the code and recompute derived fields of ``document`` in place"""
    hook = HOOKS.get(type(document))
    if hook is None:
        raise TypeError(f"{type(document).__name__} is not a financial document")
    if hook.kind:
        NumberingService(db).assign(document, hook.kind)
    totals = normalize(hook.snapshot(document))
    hook.apply(document, totals)
    return totals
