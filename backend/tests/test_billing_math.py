from decimal import Decimal

import pytest

from dentalcare.models import PaymentStatus
from dentalcare.services.billing_math import (
    aggregate_line_items, balance_due, compute_total, derive_payment_status,
    parse_payment_status, price_line, to_decimal
)


def test_line_items_are_priced_and_summed_in_order():
    lines, subtotal = aggregate_line_items([
        {"description": "Cleaning", "quantity": 2, "unit_price": 50},
        {"description": "X-Ray", "quantity": 1, "unit_price": "30"},
    ])
    assert [line.description for line in lines] == ["Cleaning", "X-Ray"]
    assert [line.total for line in lines] == [Decimal("100.00"), Decimal("30.00")]
    assert subtotal == Decimal("130.00")


def test_empty_items_give_zero_subtotal():
    lines, subtotal = aggregate_line_items([])
    assert lines == []
    assert subtotal == Decimal("0.00")


def test_cent_rounding_is_half_up():
    line = price_line(3, "0.125")
    assert line.unit_price == Decimal("0.13")
    assert line.total == Decimal("0.39")


@pytest.mark.parametrize("quantity", [0, -1, "1.5", "abc", None])
def test_invalid_quantities_are_rejected(quantity):
    with pytest.raises(ValueError):
        price_line(quantity, 10)


def test_whole_number_strings_are_accepted_as_quantity():
    assert price_line("2", 10).total == Decimal("20.00")


def test_negative_unit_price_is_rejected():
    with pytest.raises(ValueError):
        price_line(1, -5)


def test_descriptions_can_be_required():
    with pytest.raises(ValueError):
        aggregate_line_items([{"description": " ", "quantity": 1, "unit_price": 1}], require_description=True)


@pytest.mark.parametrize("value", ["ten", float("nan"), float("inf"), True])
def test_non_numeric_amounts_are_rejected(value):
    with pytest.raises(ValueError):
        to_decimal(value)


def test_total_adds_tax_and_subtracts_discount():
    assert compute_total(Decimal("130"), tax=Decimal("13"), discount=Decimal("20")) == Decimal("123.00")


def test_oversized_discount_floors_total_at_zero():
    assert compute_total(Decimal("100"), tax=0, discount=Decimal("150")) == Decimal("0.00")


def test_negative_tax_or_discount_is_rejected():
    with pytest.raises(ValueError):
        compute_total(100, tax=-1)
    with pytest.raises(ValueError):
        compute_total(100, discount=-1)


@pytest.mark.parametrize("paid,total,expected", [
    (0, 100, PaymentStatus.PENDING),
    (40, 100, PaymentStatus.PARTIAL),
    (100, 100, PaymentStatus.PAID),
    (0, 0, PaymentStatus.PENDING),
])
def test_status_is_derived_from_paid_amount(paid, total, expected):
    status, _ = derive_payment_status(paid, total)
    assert status == expected


def test_overpayment_is_clamped_to_total():
    status, paid = derive_payment_status(Decimal("150"), Decimal("100"))
    assert status == PaymentStatus.PAID
    assert paid == Decimal("100.00")


def test_cancelled_is_never_overridden():
    status, paid = derive_payment_status(100, 100, current="cancelled")
    assert status == PaymentStatus.CANCELLED
    assert paid == Decimal("100.00")


def test_overdue_holds_until_fully_paid():
    assert derive_payment_status(40, 100, current="overdue")[0] == PaymentStatus.OVERDUE
    assert derive_payment_status(100, 100, current="overdue")[0] == PaymentStatus.PAID


def test_negative_paid_amount_is_rejected():
    with pytest.raises(ValueError):
        derive_payment_status(-1, 100)


@pytest.mark.parametrize("raw,expected", [
    ("partially-paid", PaymentStatus.PARTIAL),
    ("partially_paid", PaymentStatus.PARTIAL),
    ("unpaid", PaymentStatus.PENDING),
    (" PAID ", PaymentStatus.PAID),
])
def test_legacy_status_spellings(raw, expected):
    assert parse_payment_status(raw) == expected


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        parse_payment_status("settled")


def test_balance_never_goes_negative():
    assert balance_due(100, 30) == Decimal("70.00")
    assert balance_due(100, 130) == Decimal("0.00")
