from datetime import date
from decimal import Decimal

import pytest

from dentalcare.models import (
    BillingInvoice, BillingItem, Expense, InventoryItem, InventoryOrder,
    InventoryOrderItem, Patient, Supplier
)
from dentalcare.services.financials import FinancialInput, normalize, prepare


def make_invoice(db, items, **fields):
    patient = Patient(first_name="Ada", last_name="Molar", date_of_birth=date(1990, 5, 17),
                      gender="female", phone="555")
    db.add(patient)
    db.flush()
    invoice = BillingInvoice(patient_id=patient.id, **fields)
    for description, quantity, unit_price in items:
        invoice.items.append(BillingItem(description=description, quantity=quantity,
                                         unit_price=Decimal(unit_price)))
    return invoice


def test_invoice_is_numbered_and_totalled(db):
    invoice = make_invoice(
        db,
        [("Cleaning", 2, "50"), ("X-Ray", 1, "30")],
        tax=Decimal("13"), discount=Decimal("20"), paid_amount=Decimal("50"),
    )
    prepare(db, invoice)

    assert invoice.invoice_number.startswith("INV")
    assert invoice.invoice_number.endswith("0001")
    assert [item.total for item in invoice.items] == [Decimal("100.00"), Decimal("30.00")]
    assert invoice.subtotal == Decimal("130.00")
    assert invoice.total == Decimal("123.00")
    assert invoice.status == "partial"


def test_invoice_without_items(db):
    invoice = make_invoice(db, [])
    prepare(db, invoice)
    assert invoice.subtotal == Decimal("0.00")
    assert invoice.total == Decimal("0.00")
    assert invoice.status == "pending"


def test_discount_larger_than_subtotal(db):
    invoice = make_invoice(db, [("Filling", 1, "100")], discount=Decimal("150"))
    prepare(db, invoice)
    assert invoice.total == Decimal("0.00")
    assert invoice.status == "pending"


def test_prepare_is_idempotent(db):
    invoice = make_invoice(db, [("Crown", 1, "800")], tax=Decimal("40"), paid_amount=Decimal("900"))
    prepare(db, invoice)
    first = (invoice.invoice_number, invoice.subtotal, invoice.total, invoice.paid_amount, invoice.status)
    prepare(db, invoice)
    second = (invoice.invoice_number, invoice.subtotal, invoice.total, invoice.paid_amount, invoice.status)
    assert first == second
    assert invoice.paid_amount == Decimal("840.00")
    assert invoice.status == "paid"


def test_invalid_line_stops_before_totals(db):
    invoice = make_invoice(db, [("Bad", 0, "10")])
    with pytest.raises(ValueError):
        prepare(db, invoice)
    assert invoice.total is None


def test_expense_status_from_amount(db):
    expense = Expense(category="supplies", description="Gloves", amount=Decimal("80"),
                      paid_amount=Decimal("80"), expense_date=date(2024, 3, 1))
    prepare(db, expense)
    assert expense.expense_id == "EXP-000001"
    assert expense.payment_status == "paid"


def test_order_subtotal_keeps_fulfilment_status(db):
    supplier = Supplier(name="DentSupply", phone="555")
    stock = InventoryItem(sku="SKU000001", item_name="Gloves", category="supplies", unit="box")
    db.add_all([supplier, stock])
    db.flush()
    order = InventoryOrder(supplier_id=supplier.id, status="ordered", order_date=date(2024, 3, 1))
    order.items.append(InventoryOrderItem(inventory_item_id=stock.id, name="Gloves",
                                          quantity=3, unit_cost=Decimal("12.50")))
    prepare(db, order)
    assert order.order_number.startswith("PO")
    assert order.subtotal == Decimal("37.50")
    assert order.status == "ordered"


def test_normalize_non_itemised_rejects_negative_amount():
    with pytest.raises(ValueError):
        normalize(FinancialInput(amount=Decimal("-1")))


def test_unknown_document_type():
    with pytest.raises(TypeError):
        prepare(None, object())
