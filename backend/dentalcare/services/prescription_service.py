"""
Prescription Service - prescriptions and prescription invoices
"""
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session, joinedload

from dentalcare.models import (
    Prescription, PrescriptionMedication, PrescriptionStatus, Patient, User,
    BillingInvoice, InvoiceType
)
from dentalcare.schemas import PrescriptionCreate, PrescriptionInvoiceRequest
from dentalcare.services.billing_service import BillingService
from dentalcare.services.numbering import NumberingService


class PrescriptionService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, prescription_id: int) -> Optional[Prescription]:
        return self.db.query(Prescription).options(
            joinedload(Prescription.medications)
        ).filter(Prescription.id == prescription_id).first()

    def get_all(self, patient_id: int = None, dentist_id: int = None) -> List[Prescription]:
        query = self.db.query(Prescription).options(joinedload(Prescription.medications))
        if patient_id:
            query = query.filter(Prescription.patient_id == patient_id)
        if dentist_id:
            query = query.filter(Prescription.dentist_id == dentist_id)
        return query.order_by(Prescription.prescription_date.desc(), Prescription.id.desc()).all()

    def create(self, data: PrescriptionCreate) -> Prescription:
        if not self.db.query(Patient.id).filter(Patient.id == data.patient_id).first():
            raise ValueError(f"Patient {data.patient_id} not found")
        if not self.db.query(User.id).filter(User.id == data.dentist_id).first():
            raise ValueError(f"Dentist {data.dentist_id} not found")

        prescription = Prescription(
            patient_id=data.patient_id,
            dentist_id=data.dentist_id,
            treatment_id=data.treatment_id,
            instructions=data.instructions,
            prescription_date=data.prescription_date or date.today(),
            valid_until=data.valid_until,
            status=PrescriptionStatus.ACTIVE.value,
        )
        for med in data.medications:
            prescription.medications.append(PrescriptionMedication(**med.model_dump()))

        NumberingService(self.db).assign(prescription, "prescription")
        self.db.add(prescription)
        self.db.flush()
        return prescription

    def create_invoice(self, prescription_id: int, request: PrescriptionInvoiceRequest,
                       user_id: int = None) -> Optional[BillingInvoice]:
        """
        Invoice the priced medications of a prescription.

        Each medication becomes one line (quantity x unit price). A
        prescription is invoiced at most once.
        """
        prescription = self.get_by_id(prescription_id)
        if not prescription:
            return None
        if prescription.invoice_id:
            raise ValueError(f"Prescription {prescription.prescription_number} is already invoiced")
        if prescription.status == PrescriptionStatus.CANCELLED.value:
            raise ValueError("A cancelled prescription cannot be invoiced")

        lines = [
            {
                "description": f"{med.name} {med.dosage}",
                "quantity": med.quantity,
                "unit_price": med.unit_price,
            }
            for med in prescription.medications
        ]
        invoice = BillingService(self.db).create_from_lines(
            patient_id=prescription.patient_id,
            invoice_type=InvoiceType.PRESCRIPTION,
            lines=lines,
            tax=request.tax,
            discount=request.discount,
            paid_amount=request.paid_amount,
            treatment_id=prescription.treatment_id,
            due_date=request.due_date,
            notes=request.notes or f"Prescription {prescription.prescription_number}",
            user_id=user_id,
        )
        prescription.invoice_id = invoice.id
        self.db.flush()
        return invoice
