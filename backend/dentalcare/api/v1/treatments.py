"""
Treatment API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_admin, require_clinical
from dentalcare.schemas import (
    TreatmentCreate, TreatmentUpdate, TreatmentResponse, TreatmentProgressResponse,
    SessionCreate, SessionUpdate, ProcedureCreate, ProcedureResponse
)
from dentalcare.services.treatment_progress import parse_treatment_status
from dentalcare.services.treatment_service import TreatmentService, ProcedureService
from dentalcare.services.audit_service import AuditService, AuditAction, snapshot
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/treatments", tags=["Treatments"])


# ==================== PROCEDURE CATALOG ====================

@router.get("/procedures", response_model=List[ProcedureResponse])
async def list_procedures(
    category: str = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return ProcedureService(db).get_all(category)


@router.post("/procedures", response_model=ProcedureResponse, status_code=201)
async def create_procedure(
    procedure_data: ProcedureCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin)
):
    procedure = ProcedureService(db).create(procedure_data)
    db.commit()
    return procedure


# ==================== TREATMENT PLANS ====================

@router.get("", response_model=List[TreatmentResponse])
async def list_treatments(
    patient_id: int = None,
    dentist_id: int = None,
    status: str = None,
    unbilled: bool = False,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    if status:
        try:
            status = parse_treatment_status(status).value
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return TreatmentService(db).get_all(patient_id, dentist_id, status, unbilled)


@router.post("", response_model=TreatmentResponse, status_code=201)
async def create_treatment(
    data: TreatmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    try:
        treatment = TreatmentService(db).create(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, treatment, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return treatment


@router.get("/{treatment_id}", response_model=TreatmentResponse)
async def get_treatment(
    treatment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    treatment = TreatmentService(db).get_by_id(treatment_id)
    if not treatment:
        raise HTTPException(status_code=404, detail="Treatment not found")
    return treatment


@router.put("/{treatment_id}", response_model=TreatmentResponse)
async def update_treatment(
    treatment_id: int,
    data: TreatmentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    service = TreatmentService(db)
    current = service.get_by_id(treatment_id)
    if not current:
        raise HTTPException(status_code=404, detail="Treatment not found")
    before = snapshot(current)

    treatment = service.update(treatment_id, data)
    AuditService(db).log_change(AuditAction.UPDATE, treatment, old_values=before, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return treatment


@router.get("/{treatment_id}/progress", response_model=TreatmentProgressResponse)
async def get_treatment_progress(
    treatment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    progress = TreatmentService(db).get_progress(treatment_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="Treatment not found")
    return progress


@router.post("/{treatment_id}/sessions", response_model=TreatmentResponse, status_code=201)
async def add_session(
    treatment_id: int,
    data: SessionCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    """Record a visit; the plan's status and stored progress move forward with it"""
    try:
        treatment = TreatmentService(db).add_session(treatment_id, data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not treatment:
        raise HTTPException(status_code=404, detail="Treatment not found")
    db.commit()
    return treatment


@router.put("/{treatment_id}/sessions/{session_id}", response_model=TreatmentResponse)
async def update_session(
    treatment_id: int,
    session_id: int,
    data: SessionUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_clinical)
):
    treatment = TreatmentService(db).update_session(treatment_id, session_id, data)
    if not treatment:
        raise HTTPException(status_code=404, detail="Treatment or session not found")
    db.commit()
    return treatment
