"""
Patient Service
"""
from typing import Optional, List
from sqlalchemy import or_
from sqlalchemy.orm import Session

from dentalcare.models import Patient
from dentalcare.schemas import PatientCreate, PatientUpdate


class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_all(self, search: str = None, include_inactive: bool = False) -> List[Patient]:
        query = self.db.query(Patient)
        if not include_inactive:
            query = query.filter(Patient.is_active == True)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
                Patient.phone.ilike(pattern),
            ))
        return query.order_by(Patient.last_name, Patient.first_name).all()

    def create(self, patient_data: PatientCreate) -> Patient:
        patient = Patient(**patient_data.model_dump())
        self.db.add(patient)
        self.db.flush()
        return patient

    def update(self, patient_id: int, patient_data: PatientUpdate) -> Optional[Patient]:
        patient = self.get_by_id(patient_id)
        if not patient:
            return None
        for key, value in patient_data.model_dump(exclude_unset=True).items():
            setattr(patient, key, value)
        self.db.flush()
        return patient
