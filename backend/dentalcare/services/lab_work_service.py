"""
Lab Work Service - external lab orders and their billing
"""
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from dentalcare.models import LabWork, LabWorkStatus, Patient, PaymentStatus, InvoiceType, BillingInvoice
from dentalcare.schemas import LabWorkCreate, LabWorkUpdate
from dentalcare.services.billing_service import BillingService
from dentalcare.services.financials import prepare


class LabWorkService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, lab_id: int) -> Optional[LabWork]:
        return self.db.query(LabWork).filter(LabWork.id == lab_id).first()

    def get_all(self, patient_id: int = None, status: str = None, dentist_id: int = None) -> List[LabWork]:
        query = self.db.query(LabWork)
        if patient_id:
            query = query.filter(LabWork.patient_id == patient_id)
        if dentist_id:
            query = query.filter(LabWork.dentist_id == dentist_id)
        if status:
            query = query.filter(LabWork.status == status)
        return query.order_by(LabWork.request_date.desc(), LabWork.id.desc()).all()

    def create(self, lab_data: LabWorkCreate) -> LabWork:
        if not self.db.query(Patient.id).filter(Patient.id == lab_data.patient_id).first():
            raise ValueError(f"Patient {lab_data.patient_id} not found")

        data = lab_data.model_dump()
        data["work_type"] = data["work_type"].value
        data["request_date"] = data["request_date"] or date.today()
        lab = LabWork(**data, status=LabWorkStatus.REQUESTED.value,
                      payment_status=PaymentStatus.PENDING.value)
        prepare(self.db, lab)
        self.db.add(lab)
        self.db.flush()
        return lab

    def update(self, lab_id: int, lab_data: LabWorkUpdate) -> Optional[LabWork]:
        lab = self.get_by_id(lab_id)
        if not lab:
            return None

        changes = lab_data.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = changes["status"].value
        for key, value in changes.items():
            setattr(lab, key, value)

        if lab.status == LabWorkStatus.COMPLETED.value and not lab.completed_date:
            lab.completed_date = date.today()
        prepare(self.db, lab)
        self.db.flush()
        return lab

    def create_invoice(self, lab_id: int, user_id: int = None) -> Optional[BillingInvoice]:
        """Bill the patient for a lab order: one line at the lab cost"""
        lab = self.get_by_id(lab_id)
        if not lab:
            return None
        if lab.invoice_id:
            raise ValueError("This lab work has already been invoiced")
        if lab.status == LabWorkStatus.CANCELLED.value:
            raise ValueError("Cancelled lab work cannot be invoiced")

        invoice = BillingService(self.db).create_from_lines(
            patient_id=lab.patient_id,
            invoice_type=InvoiceType.LAB,
            lines=[{
                "description": f"Lab work: {lab.work_type} ({lab.lab_name})",
                "quantity": 1,
                "unit_price": lab.cost,
            }],
            treatment_id=lab.treatment_id,
            user_id=user_id,
        )
        lab.invoice_id = invoice.id
        self.db.flush()
        return invoice
