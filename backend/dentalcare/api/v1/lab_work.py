"""
Lab Work API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_clinical, require_finance
from dentalcare.schemas import LabWorkCreate, LabWorkUpdate, LabWorkResponse, InvoiceResponse
from dentalcare.services.lab_work_service import LabWorkService
from dentalcare.services.audit_service import AuditService, AuditAction, snapshot
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/lab-work", tags=["Lab Work"])


@router.get("", response_model=List[LabWorkResponse])
async def list_lab_work(
    patient_id: int = None,
    status: str = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return LabWorkService(db).get_all(patient_id, status)


@router.post("", response_model=LabWorkResponse, status_code=201)
async def create_lab_work(
    lab_data: LabWorkCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    try:
        lab = LabWorkService(db).create(lab_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, lab, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return lab


@router.get("/{lab_id}", response_model=LabWorkResponse)
async def get_lab_work(
    lab_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    lab = LabWorkService(db).get_by_id(lab_id)
    if not lab:
        raise HTTPException(status_code=404, detail="Lab work not found")
    return lab


@router.put("/{lab_id}", response_model=LabWorkResponse)
async def update_lab_work(
    lab_id: int,
    lab_data: LabWorkUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    service = LabWorkService(db)
    current = service.get_by_id(lab_id)
    if not current:
        raise HTTPException(status_code=404, detail="Lab work not found")
    before = snapshot(current)

    try:
        lab = service.update(lab_id, lab_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.UPDATE, lab, old_values=before, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return lab


@router.post("/{lab_id}/invoice", response_model=InvoiceResponse, status_code=201)
async def invoice_lab_work(
    lab_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        invoice = LabWorkService(db).create_invoice(lab_id, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not invoice:
        raise HTTPException(status_code=404, detail="Lab work not found")
    db.commit()
    return invoice
