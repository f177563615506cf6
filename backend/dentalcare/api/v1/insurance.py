"""
Insurance API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_finance
from dentalcare.schemas import ClaimCreate, ClaimUpdate, ClaimResponse
from dentalcare.services.insurance_service import InsuranceService
from dentalcare.services.audit_service import AuditService, AuditAction
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/insurance", tags=["Insurance"])


@router.get("/claims", response_model=List[ClaimResponse])
async def list_claims(
    patient_id: int = None,
    status: str = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return InsuranceService(db).get_all(patient_id, status)


@router.post("/claims", response_model=ClaimResponse, status_code=201)
async def create_claim(
    claim_data: ClaimCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        claim = InsuranceService(db).create(claim_data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return claim


@router.put("/claims/{claim_id}", response_model=ClaimResponse)
async def update_claim(
    claim_id: int,
    claim_data: ClaimUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        claim = InsuranceService(db).update(claim_id, claim_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")

    AuditService(db).log(
        action=AuditAction.CLAIM_UPDATED,
        resource_type="InsuranceClaim",
        resource_id=claim.id,
        resource_code=claim.claim_id,
        new_values=claim_data.model_dump(exclude_unset=True),
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return claim
