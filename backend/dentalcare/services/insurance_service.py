"""
Insurance Service - claims against patients' insurers
"""
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from dentalcare.models import InsuranceClaim, Patient, ClaimStatus
from dentalcare.schemas import ClaimCreate, ClaimUpdate
from dentalcare.services.billing_math import money
from dentalcare.services.numbering import NumberingService


class InsuranceService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, claim_id: int) -> Optional[InsuranceClaim]:
        return self.db.query(InsuranceClaim).filter(InsuranceClaim.id == claim_id).first()

    def get_all(self, patient_id: int = None, status: str = None) -> List[InsuranceClaim]:
        query = self.db.query(InsuranceClaim)
        if patient_id:
            query = query.filter(InsuranceClaim.patient_id == patient_id)
        if status:
            query = query.filter(InsuranceClaim.status == status)
        return query.order_by(InsuranceClaim.created_at.desc(), InsuranceClaim.id.desc()).all()

    def create(self, claim_data: ClaimCreate, user_id: int = None) -> InsuranceClaim:
        if not self.db.query(Patient.id).filter(Patient.id == claim_data.patient_id).first():
            raise ValueError(f"Patient {claim_data.patient_id} not found")

        claim = InsuranceClaim(**claim_data.model_dump(), submitted_by=user_id)
        claim.claim_amount = money(claim.claim_amount)
        NumberingService(self.db).assign(claim, "insurance_claim")
        self.db.add(claim)
        self.db.flush()
        return claim

    def update(self, claim_id: int, claim_data: ClaimUpdate) -> Optional[InsuranceClaim]:
        claim = self.get_by_id(claim_id)
        if not claim:
            return None

        changes = claim_data.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = changes["status"].value
        for key, value in changes.items():
            setattr(claim, key, value)

        approved = money(claim.approved_amount)
        if approved > money(claim.claim_amount):
            raise ValueError(
                f"Approved amount {approved} exceeds the claimed amount {money(claim.claim_amount)}"
            )
        claim.approved_amount = approved

        if claim.status == ClaimStatus.SUBMITTED.value and not claim.submitted_date:
            claim.submitted_date = date.today()
        if claim.status in (ClaimStatus.APPROVED.value, ClaimStatus.REJECTED.value,
                            ClaimStatus.PARTIALLY_APPROVED.value) and not claim.processed_date:
            claim.processed_date = date.today()
        if claim.status == ClaimStatus.REJECTED.value and not claim.rejection_reason:
            raise ValueError("A rejection reason is required")

        self.db.flush()
        return claim
