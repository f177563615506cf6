"""
Billing API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_finance
from dentalcare.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceResponse, InvoiceStatusChange,
    RecordPaymentRequest, PaymentResponse, ReceiptResponse, StatusSummary,
    ProcedureInvoiceRequest
)
from dentalcare.services.billing_service import BillingService
from dentalcare.services.audit_service import AuditService, AuditAction, snapshot
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.get("/invoices", response_model=List[InvoiceResponse])
async def list_invoices(
    patient_id: int = None,
    status: str = None,
    invoice_type: str = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    """List invoices, newest first; legacy status spellings are accepted in the filter"""
    try:
        return BillingService(db).get_all(patient_id, status, invoice_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/next-number")
async def get_next_invoice_number(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    """Preview the next invoice number; nothing is reserved"""
    return {"invoice_number": BillingService(db).get_next_number()}


@router.get("/summary", response_model=List[StatusSummary])
async def get_billing_summary(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return BillingService(db).get_summary()


@router.post("/invoices", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    invoice_data: InvoiceCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        invoice = BillingService(db).create(invoice_data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, invoice, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return invoice


@router.post("/procedure-invoices", response_model=InvoiceResponse, status_code=201)
async def create_procedure_invoice(
    request_data: ProcedureInvoiceRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    """Bill one or more unbilled treatment plans of a single patient"""
    try:
        invoice = BillingService(db).create_procedure_invoice(
            request_data.treatment_ids,
            procedure_cost=request_data.procedure_cost,
            due_date=request_data.due_date,
            notes=request_data.notes,
            user_id=current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, invoice, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return invoice


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    invoice = BillingService(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.put("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    service = BillingService(db)
    current = service.get_by_id(invoice_id)
    if not current:
        raise HTTPException(status_code=404, detail="Invoice not found")
    before = snapshot(current)

    try:
        invoice = service.update(invoice_id, invoice_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.UPDATE, invoice, old_values=before, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return invoice


@router.post("/invoices/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: int,
    change: InvoiceStatusChange,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    """Cancel an unpaid invoice; invoices are never deleted"""
    try:
        invoice = BillingService(db).cancel(invoice_id, change.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    AuditService(db).log(
        action=AuditAction.INVOICE_CANCELLED,
        resource_type="BillingInvoice",
        resource_id=invoice.id,
        resource_code=invoice.invoice_number,
        description=change.reason,
        new_values={"status": invoice.status},
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return invoice


@router.post("/invoices/{invoice_id}/overdue", response_model=InvoiceResponse)
async def mark_invoice_overdue(
    invoice_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        invoice = BillingService(db).mark_overdue(invoice_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    AuditService(db).log(
        action=AuditAction.INVOICE_OVERDUE,
        resource_type="BillingInvoice",
        resource_id=invoice.id,
        resource_code=invoice.invoice_number,
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return invoice


@router.post("/payments", response_model=PaymentResponse, status_code=201)
async def record_payment(
    payment_data: RecordPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    """Record a payment; the invoice's paid amount and status follow"""
    try:
        payment = BillingService(db).record_payment(payment_data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.PAYMENT_RECEIVED,
        resource_type="Payment",
        resource_id=payment.id,
        resource_code=payment.payment_id,
        description=f"{payment.amount} received on invoice {payment.invoice.invoice_number}",
        new_values={
            "amount": payment.amount,
            "invoice_status": payment.invoice.status,
            "invoice_paid_amount": payment.invoice.paid_amount,
        },
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return payment


@router.get("/invoices/{invoice_id}/payments", response_model=List[PaymentResponse])
async def list_invoice_payments(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return BillingService(db).get_payments(invoice_id)


@router.get("/invoices/{invoice_id}/receipt", response_model=ReceiptResponse)
async def get_receipt(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    receipt = BillingService(db).get_receipt(invoice_id)
    if not receipt:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return receipt
