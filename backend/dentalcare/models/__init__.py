"""
SQLAlchemy Models for the Dental Clinic
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Numeric,
    ForeignKey, Index, JSON
)
from sqlalchemy.orm import relationship
import enum

from dentalcare.core.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every DateTime column here"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ==================== ENUMS ====================

class UserRole(enum.Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    DENTIST = "dentist"
    RECEPTIONIST = "receptionist"
    HYGIENIST = "hygienist"
    ASSISTANT = "assistant"


class PaymentStatus(enum.Enum):
    """Status of a billing-like document; the first three are derived"""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceType(enum.Enum):
    GENERAL = "general"
    PROCEDURE = "procedure"
    PRESCRIPTION = "prescription"
    LAB = "lab"
    CHECKUP = "checkup"


class PaymentRecordStatus(enum.Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"
    REFUNDED = "refunded"


class ApprovalStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OrderStatus(enum.Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class TreatmentStatus(enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ClaimStatus(enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PARTIALLY_APPROVED = "partially_approved"
    PAID = "paid"


class PrescriptionStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LabWorkStatus(enum.Enum):
    REQUESTED = "requested"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class AppointmentStatus(enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


# ==================== USERS & STAFF ====================

class User(Base):
    """Login account for clinic staff"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(30), nullable=False, default=UserRole.RECEPTIONIST.value)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    staff_profile = relationship("Staff", back_populates="user", uselist=False)


class Staff(Base):
    """Employment record attached to a user"""
    __tablename__ = 'staff'

    id = Column(Integer, primary_key=True)
    employee_id = Column(String(20), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    specialization = Column(String(50), nullable=True)
    license_number = Column(String(100), nullable=True)
    department = Column(String(30), nullable=True)
    hire_date = Column(Date, nullable=True)
    salary_amount = Column(Numeric(12, 2), nullable=True)
    salary_frequency = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True)
    termination_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="staff_profile")


# ==================== PATIENTS ====================

class Patient(Base):
    __tablename__ = 'patients'

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    invoices = relationship("BillingInvoice", back_populates="patient")
    treatments = relationship("Treatment", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> int:
        today = date.today()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    __table_args__ = (
        Index('ix_patients_name', 'last_name', 'first_name'),
    )


# ==================== NUMBERING ====================

class DocumentCounter(Base):
    """Per-kind sequence backing the human-readable document codes"""
    __tablename__ = 'document_counters'

    id = Column(Integer, primary_key=True)
    kind = Column(String(50), nullable=False, unique=True)
    last_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ==================== BILLING ====================

class BillingInvoice(Base):
    """Patient invoice"""
    __tablename__ = 'billing_invoices'

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(20), nullable=False, unique=True)
    invoice_type = Column(String(20), default=InvoiceType.GENERAL.value)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    treatment_id = Column(Integer, ForeignKey('treatments.id', ondelete='SET NULL'), nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(30), nullable=True)
    payment_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    patient = relationship("Patient", back_populates="invoices")
    treatment = relationship("Treatment", foreign_keys=[treatment_id])
    items = relationship(
        "BillingItem", back_populates="invoice",
        cascade="all, delete-orphan", order_by="BillingItem.position"
    )
    payments = relationship("Payment", back_populates="invoice")

    @property
    def balance(self) -> Decimal:
        return max(Decimal("0.00"), (self.total or 0) - (self.paid_amount or 0))

    __table_args__ = (
        Index('ix_billing_invoices_patient', 'patient_id', 'created_at'),
        Index('ix_billing_invoices_status', 'status'),
    )


class BillingItem(Base):
    """Invoice line; owned by its invoice"""
    __tablename__ = 'billing_items'

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey('billing_invoices.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    invoice = relationship("BillingInvoice", back_populates="items")


class Payment(Base):
    """Payment received against an invoice"""
    __tablename__ = 'payments'

    id = Column(Integer, primary_key=True)
    payment_id = Column(String(20), nullable=False, unique=True)
    invoice_id = Column(Integer, ForeignKey('billing_invoices.id', ondelete='RESTRICT'), nullable=False)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='SET NULL'), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(String(30), nullable=False)
    transaction_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    received_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    status = Column(String(20), default=PaymentRecordStatus.COMPLETED.value)
    created_at = Column(DateTime, default=utcnow)

    invoice = relationship("BillingInvoice", back_populates="payments")


# ==================== EXPENSES ====================

class Expense(Base):
    """Clinic expense; non-itemised, amount is the payable total"""
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True)
    expense_id = Column(String(20), nullable=False, unique=True)
    category = Column(String(30), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    vendor = Column(String(255), nullable=True)
    payment_method = Column(String(30), default="cash")
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    receipt_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    approved_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def balance(self) -> Decimal:
        return max(Decimal("0.00"), (self.amount or 0) - (self.paid_amount or 0))

    __table_args__ = (
        Index('ix_expenses_category_date', 'category', 'expense_date'),
        Index('ix_expenses_approval', 'approval_status', 'expense_date'),
    )


# ==================== INVENTORY ====================

class Supplier(Base):
    __tablename__ = 'suppliers'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    contact_person = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    orders = relationship("InventoryOrder", back_populates="supplier")


class InventoryItem(Base):
    """Stock-keeping unit"""
    __tablename__ = 'inventory_items'

    id = Column(Integer, primary_key=True)
    sku = Column(String(30), nullable=False, unique=True)
    item_name = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_quantity = Column(Integer, nullable=False, default=10)
    unit = Column(String(20), nullable=False)
    cost = Column(Numeric(12, 2), nullable=True)
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='SET NULL'), nullable=True)
    last_restocked = Column(DateTime, nullable=True)
    expiry_date = Column(Date, nullable=True)
    location = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    supplier = relationship("Supplier")

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.min_quantity or 0)


class InventoryOrder(Base):
    """Purchase order to a supplier"""
    __tablename__ = 'inventory_orders'

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True)
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='RESTRICT'), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.ORDERED.value)
    order_date = Column(Date, nullable=False)
    expected_date = Column(Date, nullable=True)
    received_date = Column(DateTime, nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    supplier = relationship("Supplier", back_populates="orders")
    items = relationship(
        "InventoryOrderItem", back_populates="order",
        cascade="all, delete-orphan", order_by="InventoryOrderItem.position"
    )

    __table_args__ = (
        Index('ix_inventory_orders_supplier', 'supplier_id', 'created_at'),
    )


class InventoryOrderItem(Base):
    __tablename__ = 'inventory_order_items'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('inventory_orders.id', ondelete='CASCADE'), nullable=False)
    inventory_item_id = Column(Integer, ForeignKey('inventory_items.id', ondelete='RESTRICT'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    order = relationship("InventoryOrder", back_populates="items")
    inventory_item = relationship("InventoryItem")


# ==================== TREATMENTS ====================

class Procedure(Base):
    """Catalog entry a treatment plan can be based on"""
    __tablename__ = 'procedures'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    sessions = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


class Treatment(Base):
    """Treatment plan for one patient"""
    __tablename__ = 'treatments'

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    dentist_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    procedure_id = Column(Integer, ForeignKey('procedures.id', ondelete='SET NULL'), nullable=True)
    invoice_id = Column(
        Integer, ForeignKey('billing_invoices.id', ondelete='SET NULL', use_alter=True),
        nullable=True
    )
    treatment_type = Column(String(30), nullable=False)
    description = Column(Text, nullable=False)
    teeth = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default=TreatmentStatus.PLANNED.value)
    start_date = Column(Date, nullable=True)
    completion_date = Column(DateTime, nullable=True)
    planned_sessions = Column(Integer, nullable=False, default=1)
    estimated_cost = Column(Numeric(12, 2), nullable=True)
    actual_cost = Column(Numeric(12, 2), nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    advance_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    progress_percent = Column(Integer, nullable=True)  # manual override
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    patient = relationship("Patient", back_populates="treatments")
    dentist = relationship("User")
    procedure = relationship("Procedure")
    invoice = relationship("BillingInvoice", foreign_keys=[invoice_id], post_update=True)
    sessions = relationship(
        "TreatmentSession", back_populates="treatment",
        cascade="all, delete-orphan", order_by="TreatmentSession.id"
    )

    @property
    def progress(self):
        from dentalcare.services.treatment_progress import compute_progress
        return compute_progress(self)

    __table_args__ = (
        Index('ix_treatments_patient', 'patient_id', 'start_date'),
        Index('ix_treatments_dentist_status', 'dentist_id', 'status'),
    )


class TreatmentSession(Base):
    __tablename__ = 'treatment_sessions'

    id = Column(Integer, primary_key=True)
    treatment_id = Column(Integer, ForeignKey('treatments.id', ondelete='CASCADE'), nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    duration = Column(Integer, nullable=True)  # minutes
    notes = Column(Text, nullable=True)
    performed_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    treatment = relationship("Treatment", back_populates="sessions")


# ==================== CLINICAL DOCUMENTS ====================

class Prescription(Base):
    __tablename__ = 'prescriptions'

    id = Column(Integer, primary_key=True)
    prescription_number = Column(String(20), nullable=False, unique=True)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    dentist_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    treatment_id = Column(Integer, ForeignKey('treatments.id', ondelete='SET NULL'), nullable=True)
    invoice_id = Column(Integer, ForeignKey('billing_invoices.id', ondelete='SET NULL'), nullable=True)
    instructions = Column(Text, nullable=True)
    prescription_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=PrescriptionStatus.ACTIVE.value)
    created_at = Column(DateTime, default=utcnow)

    medications = relationship(
        "PrescriptionMedication", back_populates="prescription",
        cascade="all, delete-orphan", order_by="PrescriptionMedication.id"
    )
    invoice = relationship("BillingInvoice")


class PrescriptionMedication(Base):
    __tablename__ = 'prescription_medications'

    id = Column(Integer, primary_key=True)
    prescription_id = Column(Integer, ForeignKey('prescriptions.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)
    frequency = Column(String(100), nullable=False)
    duration = Column(String(100), nullable=False)
    instructions = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    prescription = relationship("Prescription", back_populates="medications")


class InsuranceClaim(Base):
    __tablename__ = 'insurance_claims'

    id = Column(Integer, primary_key=True)
    claim_id = Column(String(20), nullable=False, unique=True)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    treatment_id = Column(Integer, ForeignKey('treatments.id', ondelete='SET NULL'), nullable=True)
    provider = Column(String(255), nullable=False)
    policy_number = Column(String(100), nullable=False)
    group_number = Column(String(100), nullable=True)
    claim_amount = Column(Numeric(12, 2), nullable=False)
    approved_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    status = Column(String(30), nullable=False, default=ClaimStatus.PENDING.value)
    submitted_date = Column(Date, nullable=True)
    processed_date = Column(Date, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    submitted_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class LabWork(Base):
    """External lab order; cost is the payable total"""
    __tablename__ = 'lab_work'

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    dentist_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    treatment_id = Column(Integer, ForeignKey('treatments.id', ondelete='SET NULL'), nullable=True)
    invoice_id = Column(Integer, ForeignKey('billing_invoices.id', ondelete='SET NULL'), nullable=True)
    lab_name = Column(String(255), nullable=False)
    work_type = Column(String(30), nullable=False)
    description = Column(Text, nullable=False)
    request_date = Column(Date, nullable=False)
    expected_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=LabWorkStatus.REQUESTED.value)
    cost = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ==================== APPOINTMENTS ====================

class Appointment(Base):
    """Chair booking; the slot runs from appointment_date for duration minutes"""
    __tablename__ = 'appointments'

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False)
    dentist_id = Column(Integer, ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    appointment_date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=30)  # minutes
    appointment_type = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value)
    notes = Column(Text, nullable=True)
    reminder_sent = Column(Boolean, default=False)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    patient = relationship("Patient")
    dentist = relationship("User", foreign_keys=[dentist_id])

    @property
    def end_time(self) -> datetime:
        from dentalcare.services.scheduling import computed_end_time
        return computed_end_time(self.appointment_date, self.duration)

    __table_args__ = (
        Index('ix_appointments_dentist_date', 'dentist_id', 'appointment_date'),
        Index('ix_appointments_patient_date', 'patient_id', 'appointment_date'),
        Index('ix_appointments_status', 'status'),
    )


# ==================== AUDIT LOG ====================

class AuditLog(Base):
    """Audit trail for sensitive operations"""
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    username = Column(String(100), nullable=True)  # kept if the user is deleted
    ip_address = Column(String(50), nullable=True)

    action = Column(String(50), nullable=False)
    resource_type = Column(String(100), nullable=False)
    resource_id = Column(Integer, nullable=True)
    resource_code = Column(String(30), nullable=True)

    description = Column(Text, nullable=True)
    old_values = Column(Text, nullable=True)  # JSON
    new_values = Column(Text, nullable=True)  # JSON

    status = Column(String(20), default='success')
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index('ix_audit_logs_timestamp', 'timestamp'),
        Index('ix_audit_logs_resource', 'resource_type', 'resource_id'),
        Index('ix_audit_logs_action', 'action'),
    )
