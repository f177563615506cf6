"""
Prescription API Routes
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_clinical, require_finance
from dentalcare.schemas import (
    PrescriptionCreate, PrescriptionResponse, PrescriptionInvoiceRequest, InvoiceResponse
)
from dentalcare.services.prescription_service import PrescriptionService

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


@router.get("", response_model=List[PrescriptionResponse])
async def list_prescriptions(
    patient_id: int = None,
    dentist_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return PrescriptionService(db).get_all(patient_id, dentist_id)


@router.post("", response_model=PrescriptionResponse, status_code=201)
async def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    try:
        prescription = PrescriptionService(db).create(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return prescription


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
async def get_prescription(
    prescription_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    prescription = PrescriptionService(db).get_by_id(prescription_id)
    if not prescription:
        raise HTTPException(status_code=404, detail="Prescription not found")
    return prescription


@router.post("/{prescription_id}/invoice", response_model=InvoiceResponse, status_code=201)
async def invoice_prescription(
    prescription_id: int,
    request_data: PrescriptionInvoiceRequest,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        invoice = PrescriptionService(db).create_invoice(prescription_id, request_data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not invoice:
        raise HTTPException(status_code=404, detail="Prescription not found")
    db.commit()
    return invoice
