"""
Billing Service - Invoices, Payments, Receipts
"""
from typing import Optional, List
from datetime import date, timedelta
from decimal import Decimal
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from dentalcare.models import (
    BillingInvoice, BillingItem, Payment, Patient, Treatment, PaymentStatus,
    PaymentRecordStatus, InvoiceType, TreatmentStatus
)
from dentalcare.schemas import InvoiceCreate, InvoiceUpdate, RecordPaymentRequest
from dentalcare.services.billing_math import ZERO, balance_due, money, parse_payment_status
from dentalcare.services.financials import prepare
from dentalcare.services.numbering import NumberingService

logger = logging.getLogger(__name__)


class BillingService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, invoice_id: int) -> Optional[BillingInvoice]:
        return self.db.query(BillingInvoice).options(
            joinedload(BillingInvoice.items),
            joinedload(BillingInvoice.patient)
        ).filter(BillingInvoice.id == invoice_id).first()

    def get_all(self, patient_id: int = None, status: str = None,
                invoice_type: str = None) -> List[BillingInvoice]:
        query = self.db.query(BillingInvoice).options(joinedload(BillingInvoice.items))
        if patient_id:
            query = query.filter(BillingInvoice.patient_id == patient_id)
        if status:
            query = query.filter(BillingInvoice.status == parse_payment_status(status).value)
        if invoice_type:
            query = query.filter(BillingInvoice.invoice_type == invoice_type)
        return query.order_by(BillingInvoice.created_at.desc(), BillingInvoice.id.desc()).all()

    def get_next_number(self) -> str:
        return NumberingService(self.db).peek("invoice")

    def _check_links(self, patient_id: int, treatment_id: Optional[int]):
        if not self.db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise ValueError(f"Patient {patient_id} not found")
        if treatment_id is not None:
            treatment = self.db.query(Treatment).filter(Treatment.id == treatment_id).first()
            if not treatment:
                raise ValueError(f"Treatment {treatment_id} not found")
            if treatment.patient_id != patient_id:
                raise ValueError("Treatment belongs to a different patient")

    def create(self, invoice_data: InvoiceCreate, user_id: int = None) -> BillingInvoice:
        self._check_links(invoice_data.patient_id, invoice_data.treatment_id)

        invoice = BillingInvoice(
            patient_id=invoice_data.patient_id,
            treatment_id=invoice_data.treatment_id,
            invoice_type=invoice_data.invoice_type.value,
            tax=invoice_data.tax,
            discount=invoice_data.discount,
            paid_amount=invoice_data.paid_amount,
            status=PaymentStatus.PENDING.value,
            payment_method=invoice_data.payment_method.value if invoice_data.payment_method else None,
            due_date=invoice_data.due_date,
            notes=invoice_data.notes,
            created_by=user_id,
        )
        for item in invoice_data.items:
            invoice.items.append(BillingItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
            ))

        prepare(self.db, invoice)
        if invoice.status == PaymentStatus.PAID.value and invoice.total > 0:
            invoice.payment_date = date.today()
        self.db.add(invoice)
        self.db.flush()

        if invoice.treatment_id:
            treatment = self.db.get(Treatment, invoice.treatment_id)
            if treatment.invoice_id is None:
                treatment.invoice_id = invoice.id

        logger.info(f"Created invoice {invoice.invoice_number} total={invoice.total} status={invoice.status}")
        return invoice

    def update(self, invoice_id: int, invoice_data: InvoiceUpdate) -> Optional[BillingInvoice]:
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status == PaymentStatus.CANCELLED.value:
            raise ValueError("Cancelled invoices cannot be modified")

        # paid_amount only moves through record_payment
        already_paid = money(invoice.paid_amount)
        changes = invoice_data.model_dump(exclude_unset=True)
        items = changes.pop("items", None)
        for key, value in changes.items():
            if key == "payment_method" and value is not None:
                value = value.value
            setattr(invoice, key, value)

        if items is not None:
            invoice.items.clear()
            for item in items:
                invoice.items.append(BillingItem(
                    description=item["description"],
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                ))

        prepare(self.db, invoice)
        if money(invoice.paid_amount) < already_paid:
            logger.warning(f"Rejected edit of {invoice.invoice_number}: total {invoice.total} below paid {already_paid}")
            raise ValueError(f"Invoice total cannot be reduced below the {already_paid} already paid")
        if invoice.status == PaymentStatus.PAID.value and not invoice.payment_date:
            invoice.payment_date = date.today()
        self.db.flush()
        return invoice

    def cancel(self, invoice_id: int, reason: str = None) -> Optional[BillingInvoice]:
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status == PaymentStatus.CANCELLED.value:
            raise ValueError(f"Invoice {invoice.invoice_number} is already cancelled")
        if invoice.paid_amount and invoice.paid_amount > 0:
            raise ValueError("Invoices with recorded payments cannot be cancelled")

        invoice.status = PaymentStatus.CANCELLED.value
        if reason:
            invoice.notes = f"{invoice.notes}\n{reason}".strip() if invoice.notes else reason
        self.db.flush()
        logger.info(f"Cancelled invoice {invoice.invoice_number}")
        return invoice

    def mark_overdue(self, invoice_id: int) -> Optional[BillingInvoice]:
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        if invoice.status in (PaymentStatus.PAID.value, PaymentStatus.CANCELLED.value):
            raise ValueError(f"A {invoice.status} invoice cannot be marked overdue")
        invoice.status = PaymentStatus.OVERDUE.value
        self.db.flush()
        return invoice

    def record_payment(self, payment_data: RecordPaymentRequest, user_id: int = None) -> Payment:
        """
        Record money received against an invoice.

        The payment may not exceed the open balance; the invoice's paid amount
        and status are re-derived from the new total received.
        """
        invoice = self.db.query(BillingInvoice).filter(
            BillingInvoice.id == payment_data.invoice_id
        ).with_for_update().first()
        if not invoice:
            logger.warning(f"Payment refused: invoice {payment_data.invoice_id} not found")
            raise ValueError(f"Invoice {payment_data.invoice_id} not found")
        if invoice.status == PaymentStatus.CANCELLED.value:
            logger.warning(f"Payment refused: {invoice.invoice_number} is cancelled")
            raise ValueError("Payments cannot be recorded on a cancelled invoice")

        amount = money(payment_data.amount)
        balance = balance_due(invoice.total, invoice.paid_amount)
        if amount > balance:
            logger.warning(f"Payment refused: {amount} exceeds balance {balance} on {invoice.invoice_number}")
            raise ValueError(f"Payment of {amount} exceeds the outstanding balance of {balance}")

        payment = Payment(
            invoice_id=invoice.id,
            patient_id=invoice.patient_id,
            amount=amount,
            payment_date=payment_data.payment_date or date.today(),
            payment_method=payment_data.payment_method.value,
            transaction_id=payment_data.transaction_id,
            notes=payment_data.notes,
            received_by=user_id,
            status=PaymentRecordStatus.COMPLETED.value,
        )
        NumberingService(self.db).assign(payment, "payment")
        self.db.add(payment)

        invoice.paid_amount = money(invoice.paid_amount) + amount
        prepare(self.db, invoice)
        if invoice.status == PaymentStatus.PAID.value:
            invoice.payment_date = payment.payment_date
        self.db.flush()

        logger.info(
            f"Payment {payment.payment_id} of {amount} on {invoice.invoice_number}; "
            f"invoice now {invoice.status}"
        )
        return payment

    def get_payments(self, invoice_id: int) -> List[Payment]:
        return self.db.query(Payment).filter(
            Payment.invoice_id == invoice_id
        ).order_by(Payment.payment_date, Payment.id).all()

    def get_receipt(self, invoice_id: int) -> Optional[dict]:
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        return {
            "invoice_number": invoice.invoice_number,
            "invoice_type": invoice.invoice_type,
            "status": invoice.status,
            "patient_name": invoice.patient.full_name if invoice.patient else "N/A",
            "items": invoice.items,
            "subtotal": invoice.subtotal,
            "tax": invoice.tax,
            "discount": invoice.discount,
            "total": invoice.total,
            "paid_amount": invoice.paid_amount,
            "balance": invoice.balance,
            "payments": self.get_payments(invoice.id),
        }

    def get_summary(self) -> List[dict]:
        rows = self.db.query(
            BillingInvoice.status,
            func.count(BillingInvoice.id),
            func.sum(BillingInvoice.total),
            func.sum(BillingInvoice.paid_amount),
        ).group_by(BillingInvoice.status).all()

        summary = []
        for status, count, total, paid in rows:
            total = money(total or ZERO)
            paid = money(paid or ZERO)
            outstanding = ZERO if status == PaymentStatus.CANCELLED.value else balance_due(total, paid)
            summary.append({
                "status": status,
                "count": count,
                "total": total,
                "paid": paid,
                "outstanding": outstanding,
            })
        return sorted(summary, key=lambda row: row["status"])

    def create_from_lines(self, patient_id: int, invoice_type: InvoiceType, lines: List[dict],
                          tax: Decimal = ZERO, discount: Decimal = ZERO, paid_amount: Decimal = ZERO,
                          treatment_id: int = None, due_date: date = None, notes: str = None,
                          user_id: int = None) -> BillingInvoice:
        """Build an invoice from already-known lines (prescriptions, lab work)"""
        invoice = BillingInvoice(
            patient_id=patient_id,
            treatment_id=treatment_id,
            invoice_type=invoice_type.value,
            tax=tax,
            discount=discount,
            paid_amount=paid_amount,
            status=PaymentStatus.PENDING.value,
            due_date=due_date,
            notes=notes,
            created_by=user_id,
        )
        for line in lines:
            invoice.items.append(BillingItem(**line))
        prepare(self.db, invoice)
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def create_procedure_invoice(self, treatment_ids: List[int], procedure_cost: Decimal = None,
                                 due_date: date = None, notes: str = None,
                                 user_id: int = None) -> BillingInvoice:
        """
        Bill one or more treatment plans of the same patient on a single
        procedure invoice. Each plan can only ever be billed once.

        A line is priced from ``procedure_cost`` (single plan only), then the
        plan's actual cost, its estimate, and finally the catalog price.
        """
        ids = list(dict.fromkeys(treatment_ids))
        treatments = self.db.query(Treatment).options(
            joinedload(Treatment.procedure)
        ).filter(Treatment.id.in_(ids)).all()
        found = {treatment.id: treatment for treatment in treatments}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise ValueError(f"Treatment(s) not found: {', '.join(missing)}")
        treatments = [found[i] for i in ids]

        if len({treatment.patient_id for treatment in treatments}) > 1:
            logger.warning(f"Procedure invoice refused: treatments {ids} span several patients")
            raise ValueError("All treatments must belong to the same patient")
        for treatment in treatments:
            if treatment.status == TreatmentStatus.CANCELLED.value:
                raise ValueError(f"Treatment {treatment.id} is cancelled")
            if treatment.invoice_id is not None:
                logger.warning(f"Procedure invoice refused: treatment {treatment.id} already billed")
                raise ValueError(f"Treatment {treatment.id} has already been invoiced")
        if procedure_cost is not None and len(treatments) > 1:
            raise ValueError("procedure_cost can only be given when billing a single treatment")

        lines = []
        for treatment in treatments:
            if procedure_cost is not None:
                cost = procedure_cost
            elif treatment.actual_cost is not None:
                cost = treatment.actual_cost
            elif treatment.estimated_cost is not None:
                cost = treatment.estimated_cost
            elif treatment.procedure is not None:
                cost = treatment.procedure.price
            else:
                cost = ZERO
            name = treatment.procedure.name if treatment.procedure else treatment.description
            teeth = ", ".join(str(tooth) for tooth in treatment.teeth or []) or "N/A"
            lines.append({
                "description": f"{name or treatment.treatment_type} - {teeth}",
                "quantity": 1,
                "unit_price": money(cost),
            })

        invoice = self.create_from_lines(
            treatments[0].patient_id, InvoiceType.PROCEDURE, lines,
            treatment_id=treatments[0].id,
            due_date=due_date or date.today() + timedelta(days=30),
            notes=notes or f"Procedure fees for {len(treatments)} treatment(s)",
            user_id=user_id,
        )
        for treatment in treatments:
            treatment.invoice_id = invoice.id
        self.db.flush()

        logger.info(f"Created procedure invoice {invoice.invoice_number} for treatments {ids}")
        return invoice
