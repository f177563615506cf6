"""
Treatment Service - treatment plans, visit sessions, procedure catalog
"""
from typing import Optional, List
from datetime import date
import logging

from sqlalchemy.orm import Session, joinedload

from dentalcare.models import (
    Treatment, TreatmentSession, TreatmentStatus, Procedure, Patient, User, utcnow
)
from dentalcare.schemas import (
    TreatmentCreate, TreatmentUpdate, SessionCreate, SessionUpdate, ProcedureCreate
)
from dentalcare.services.billing_math import money
from dentalcare.services.treatment_progress import (
    TreatmentProgress, apply_session_progress, compute_progress
)

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (TreatmentStatus.COMPLETED.value, TreatmentStatus.CANCELLED.value)


class ProcedureService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, procedure_id: int) -> Optional[Procedure]:
        return self.db.query(Procedure).filter(Procedure.id == procedure_id).first()

    def get_all(self, category: str = None) -> List[Procedure]:
        query = self.db.query(Procedure).filter(Procedure.is_active == True)
        if category:
            query = query.filter(Procedure.category == category)
        return query.order_by(Procedure.category, Procedure.name).all()

    def create(self, procedure_data: ProcedureCreate) -> Procedure:
        procedure = Procedure(**procedure_data.model_dump())
        procedure.price = money(procedure.price)
        self.db.add(procedure)
        self.db.flush()
        return procedure


class TreatmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, treatment_id: int) -> Optional[Treatment]:
        return self.db.query(Treatment).options(
            joinedload(Treatment.sessions)
        ).filter(Treatment.id == treatment_id).first()

    def get_all(self, patient_id: int = None, dentist_id: int = None, status: str = None,
                unbilled: bool = False) -> List[Treatment]:
        query = self.db.query(Treatment).options(joinedload(Treatment.sessions))
        if patient_id:
            query = query.filter(Treatment.patient_id == patient_id)
        if dentist_id:
            query = query.filter(Treatment.dentist_id == dentist_id)
        if status:
            query = query.filter(Treatment.status == status)
        if unbilled:
            query = query.filter(
                Treatment.invoice_id.is_(None),
                Treatment.status != TreatmentStatus.CANCELLED.value
            )
        return query.order_by(Treatment.created_at.desc(), Treatment.id.desc()).all()

    def create(self, data: TreatmentCreate) -> Treatment:
        if not self.db.query(Patient.id).filter(Patient.id == data.patient_id).first():
            raise ValueError(f"Patient {data.patient_id} not found")
        if not self.db.query(User.id).filter(User.id == data.dentist_id).first():
            raise ValueError(f"Dentist {data.dentist_id} not found")

        values = data.model_dump()
        values["treatment_type"] = values["treatment_type"].value

        # A catalog procedure fills in what the plan leaves open
        if data.procedure_id is not None:
            procedure = ProcedureService(self.db).get_by_id(data.procedure_id)
            if not procedure:
                raise ValueError(f"Procedure {data.procedure_id} not found")
            if values["planned_sessions"] is None:
                values["planned_sessions"] = procedure.sessions
            if values["estimated_cost"] is None:
                values["estimated_cost"] = procedure.price
        if values["planned_sessions"] is None:
            values["planned_sessions"] = 1
        values["start_date"] = values["start_date"] or date.today()

        treatment = Treatment(**values)
        self._on_status(treatment)
        self.db.add(treatment)
        self.db.flush()
        return treatment

    def update(self, treatment_id: int, data: TreatmentUpdate) -> Optional[Treatment]:
        treatment = self.get_by_id(treatment_id)
        if not treatment:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(treatment, key, value)
        self._on_status(treatment)
        self.db.flush()
        return treatment

    def _on_status(self, treatment: Treatment):
        if treatment.status == TreatmentStatus.COMPLETED.value:
            treatment.progress_percent = 100
            if not treatment.completion_date:
                treatment.completion_date = utcnow()

    def _get_open(self, treatment_id: int) -> Optional[Treatment]:
        treatment = self.get_by_id(treatment_id)
        if treatment and treatment.status in CLOSED_STATUSES:
            raise ValueError(f"Sessions cannot be recorded on a {treatment.status} treatment")
        return treatment

    def add_session(self, treatment_id: int, data: SessionCreate, user_id: int = None) -> Optional[Treatment]:
        treatment = self._get_open(treatment_id)
        if not treatment:
            return None
        treatment.sessions.append(TreatmentSession(
            date=data.date or utcnow(),
            duration=data.duration,
            notes=data.notes,
            performed_by=user_id,
        ))
        apply_session_progress(treatment)
        self.db.flush()
        logger.info(
            f"Treatment {treatment.id}: session {len(treatment.sessions)}/{treatment.planned_sessions}, "
            f"status={treatment.status}"
        )
        return treatment

    def update_session(self, treatment_id: int, session_id: int, data: SessionUpdate) -> Optional[Treatment]:
        treatment = self.get_by_id(treatment_id)
        if not treatment:
            return None
        session = next((s for s in treatment.sessions if s.id == session_id), None)
        if session is None:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(session, key, value)
        self.db.flush()
        return treatment

    def get_progress(self, treatment_id: int) -> Optional[TreatmentProgress]:
        treatment = self.get_by_id(treatment_id)
        if not treatment:
            return None
        return compute_progress(treatment)
