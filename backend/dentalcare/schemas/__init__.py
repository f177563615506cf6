"""
Pydantic Schemas for API Validation

Request schemas never carry derived fields (line totals, subtotal, total,
payment status); those are always computed server-side.
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, ValidationInfo, field_validator
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from dentalcare.models import OrderStatus, UserRole
from dentalcare.services.treatment_progress import parse_treatment_status
from dentalcare.services.scheduling import MAX_DURATION, MIN_DURATION, to_clinic_time

Money = Decimal


def _reject_null(v, info: ValidationInfo):
    # Partial updates may omit a field but not blank a required column
    if v is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return v


# ==================== ENUMS ====================

class InvoiceTypeEnum(str, Enum):
    GENERAL = "general"
    PROCEDURE = "procedure"
    PRESCRIPTION = "prescription"
    LAB = "lab"
    CHECKUP = "checkup"


class InvoicePaymentMethodEnum(str, Enum):
    CASH = "cash"
    CARD = "card"
    INSURANCE = "insurance"
    BANK_TRANSFER = "bank-transfer"
    OTHER = "other"


class PaymentMethodEnum(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    INSURANCE = "insurance"
    CHECK = "check"
    BANK_TRANSFER = "bank_transfer"


class ExpenseCategoryEnum(str, Enum):
    SUPPLIES = "supplies"
    EQUIPMENT = "equipment"
    UTILITIES = "utilities"
    SALARIES = "salaries"
    RENT = "rent"
    MAINTENANCE = "maintenance"
    MARKETING = "marketing"
    LAB_FEES = "lab_fees"
    OTHER = "other"


class ExpensePaymentMethodEnum(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    OTHER = "other"


class InventoryCategoryEnum(str, Enum):
    INSTRUMENTS = "instruments"
    MATERIALS = "materials"
    MEDICATIONS = "medications"
    SUPPLIES = "supplies"
    EQUIPMENT = "equipment"
    CONSUMABLES = "consumables"
    OTHER = "other"


class InventoryUnitEnum(str, Enum):
    PIECE = "piece"
    BOX = "box"
    BOTTLE = "bottle"
    PACK = "pack"
    KG = "kg"
    LITER = "liter"
    OTHER = "other"


class TreatmentTypeEnum(str, Enum):
    FILLING = "filling"
    ROOT_CANAL = "root-canal"
    CROWN = "crown"
    BRIDGE = "bridge"
    EXTRACTION = "extraction"
    IMPLANT = "implant"
    DENTURES = "dentures"
    WHITENING = "whitening"
    BRACES = "braces"
    CLEANING = "cleaning"
    SCALING = "scaling"
    OTHER = "other"


class ClaimStatusEnum(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PARTIALLY_APPROVED = "partially_approved"
    PAID = "paid"


class LabWorkTypeEnum(str, Enum):
    CROWN = "crown"
    BRIDGE = "bridge"
    DENTURE = "denture"
    IMPLANT = "implant"
    VENEER = "veneer"
    RETAINER = "retainer"
    MOUTHGUARD = "mouthguard"
    OTHER = "other"


class LabWorkStatusEnum(str, Enum):
    REQUESTED = "requested"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# ==================== AUTH SCHEMAS ====================

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = UserRole.RECEPTIONIST.value

    @field_validator("role")
    @classmethod
    def check_role(cls, v: str) -> str:
        return UserRole(v).value


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== PATIENT SCHEMAS ====================

class PatientBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: str = Field(..., pattern="^(male|female|other)$")
    phone: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, pattern="^(male|female|other)$")
    phone: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "date_of_birth", "gender", "phone", "is_active")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class PatientResponse(PatientBase):
    id: int
    is_active: bool
    full_name: str
    age: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== STAFF SCHEMAS ====================

class StaffCreate(BaseModel):
    user_id: int
    employee_id: Optional[str] = Field(None, max_length=20)
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    department: Optional[str] = Field(None, pattern="^(clinical|administrative|support)$")
    hire_date: Optional[date] = None
    salary_amount: Optional[Money] = Field(None, ge=0)
    salary_frequency: Optional[str] = Field(None, pattern="^(hourly|monthly|yearly)$")
    notes: Optional[str] = None


class StaffResponse(BaseModel):
    id: int
    employee_id: str
    user_id: int
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    department: Optional[str] = None
    hire_date: Optional[date] = None
    salary_amount: Optional[Money] = None
    salary_frequency: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== BILLING SCHEMAS ====================

class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1)
    unit_price: Money = Field(..., ge=0)


class LineItemResponse(BaseModel):
    id: int
    description: str
    quantity: int
    unit_price: Money
    total: Money

    model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(BaseModel):
    patient_id: int
    treatment_id: Optional[int] = None
    invoice_type: InvoiceTypeEnum = InvoiceTypeEnum.GENERAL
    items: List[LineItemCreate] = []
    tax: Money = Field(default=Decimal("0"), ge=0)
    discount: Money = Field(default=Decimal("0"), ge=0)
    paid_amount: Money = Field(default=Decimal("0"), ge=0)
    payment_method: Optional[InvoicePaymentMethodEnum] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    items: Optional[List[LineItemCreate]] = None
    tax: Optional[Money] = Field(None, ge=0)
    discount: Optional[Money] = Field(None, ge=0)
    payment_method: Optional[InvoicePaymentMethodEnum] = None
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("items", "tax", "discount")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    invoice_type: str
    patient_id: int
    treatment_id: Optional[int] = None
    items: List[LineItemResponse] = []
    subtotal: Money
    tax: Money
    discount: Money
    total: Money
    paid_amount: Money
    balance: Money
    status: str
    payment_method: Optional[str] = None
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceStatusChange(BaseModel):
    reason: Optional[str] = None


class RecordPaymentRequest(BaseModel):
    invoice_id: int
    amount: Money = Field(..., gt=0)
    payment_method: PaymentMethodEnum
    payment_date: Optional[date] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    payment_id: str
    invoice_id: int
    patient_id: Optional[int] = None
    amount: Money
    payment_date: date
    payment_method: str
    transaction_id: Optional[str] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptResponse(BaseModel):
    invoice_number: str
    invoice_type: str
    status: str
    patient_name: str
    items: List[LineItemResponse]
    subtotal: Money
    tax: Money
    discount: Money
    total: Money
    paid_amount: Money
    balance: Money
    payments: List[PaymentResponse]


class StatusSummary(BaseModel):
    status: str
    count: int
    total: Money
    paid: Money
    outstanding: Money


# ==================== EXPENSE SCHEMAS ====================

class ExpenseCreate(BaseModel):
    category: ExpenseCategoryEnum
    description: str = Field(..., min_length=1)
    amount: Money = Field(..., ge=0)
    expense_date: Optional[date] = None
    vendor: Optional[str] = None
    payment_method: ExpensePaymentMethodEnum = ExpensePaymentMethodEnum.CASH
    paid_amount: Money = Field(default=Decimal("0"), ge=0)
    receipt_number: Optional[str] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    category: Optional[ExpenseCategoryEnum] = None
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Money] = Field(None, ge=0)
    expense_date: Optional[date] = None
    vendor: Optional[str] = None
    payment_method: Optional[ExpensePaymentMethodEnum] = None
    paid_amount: Optional[Money] = Field(None, ge=0)
    receipt_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("category", "description", "amount", "expense_date", "payment_method", "paid_amount")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class ExpenseResponse(BaseModel):
    id: int
    expense_id: str
    category: str
    description: str
    amount: Money
    expense_date: date
    vendor: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: str
    paid_amount: Money
    balance: Money
    receipt_number: Optional[str] = None
    notes: Optional[str] = None
    approval_status: str
    approved_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpenseApprovalRequest(BaseModel):
    status: str = Field(..., pattern="^(approved|rejected)$")
    notes: Optional[str] = None


class ExpenseCategoryStats(BaseModel):
    category: str
    count: int
    total_amount: Money
    total_paid: Money
    total_pending: Money


# ==================== INVENTORY SCHEMAS ====================

class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=3, max_length=50)
    notes: Optional[str] = None


class SupplierResponse(SupplierCreate):
    id: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class InventoryItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    category: InventoryCategoryEnum
    sku: Optional[str] = Field(None, max_length=30)
    quantity: int = Field(..., ge=0)
    min_quantity: int = Field(default=10, ge=0)
    unit: InventoryUnitEnum
    cost: Optional[Money] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class InventoryItemResponse(BaseModel):
    id: int
    sku: str
    item_name: str
    category: str
    quantity: int
    min_quantity: int
    unit: str
    cost: Optional[Money] = None
    supplier_id: Optional[int] = None
    last_restocked: Optional[datetime] = None
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    is_low_stock: bool

    model_config = ConfigDict(from_attributes=True)


class OrderItemCreate(BaseModel):
    inventory_item_id: int
    quantity: int = Field(..., ge=1)
    unit_cost: Money = Field(..., ge=0)


class OrderItemResponse(BaseModel):
    id: int
    inventory_item_id: int
    name: Optional[str] = None
    quantity: int
    unit_cost: Money
    total: Money

    model_config = ConfigDict(from_attributes=True)


def parse_order_status(v):
    if v is None:
        return v
    raw = str(v).strip().lower()
    # "received" is what the stock screen used to send for delivered orders
    if raw == "received":
        raw = OrderStatus.DELIVERED.value
    return OrderStatus(raw).value


class OrderCreate(BaseModel):
    supplier_id: int
    items: List[OrderItemCreate] = Field(..., min_length=1)
    status: str = OrderStatus.ORDERED.value
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        status = parse_order_status(v)
        if status == OrderStatus.DELIVERED.value:
            raise ValueError("orders are delivered through the receive action")
        return status


class OrderUpdate(BaseModel):
    items: Optional[List[OrderItemCreate]] = Field(None, min_length=1)
    status: Optional[str] = None
    expected_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        status = parse_order_status(v)
        if status == OrderStatus.DELIVERED.value:
            raise ValueError("orders are delivered through the receive action")
        return status

    @field_validator("items", "status")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class OrderResponse(BaseModel):
    id: int
    order_number: str
    supplier_id: int
    status: str
    order_date: date
    expected_date: Optional[date] = None
    received_date: Optional[datetime] = None
    items: List[OrderItemResponse] = []
    subtotal: Money
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== INSURANCE SCHEMAS ====================

class ClaimCreate(BaseModel):
    patient_id: int
    treatment_id: Optional[int] = None
    provider: str = Field(..., min_length=1)
    policy_number: str = Field(..., min_length=1)
    group_number: Optional[str] = None
    claim_amount: Money = Field(..., ge=0)
    notes: Optional[str] = None


class ClaimUpdate(BaseModel):
    status: Optional[ClaimStatusEnum] = None
    approved_amount: Optional[Money] = Field(None, ge=0)
    submitted_date: Optional[date] = None
    processed_date: Optional[date] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("status", "approved_amount")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class ClaimResponse(BaseModel):
    id: int
    claim_id: str
    patient_id: int
    treatment_id: Optional[int] = None
    provider: str
    policy_number: str
    group_number: Optional[str] = None
    claim_amount: Money
    approved_amount: Money
    status: str
    submitted_date: Optional[date] = None
    processed_date: Optional[date] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== PRESCRIPTION SCHEMAS ====================

class MedicationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    dosage: str = Field(..., min_length=1)
    frequency: str = Field(..., min_length=1)
    duration: str = Field(..., min_length=1)
    instructions: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price: Money = Field(default=Decimal("0"), ge=0)


class MedicationResponse(MedicationCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class PrescriptionCreate(BaseModel):
    patient_id: int
    dentist_id: int
    treatment_id: Optional[int] = None
    medications: List[MedicationCreate] = Field(..., min_length=1)
    instructions: Optional[str] = None
    prescription_date: Optional[date] = None
    valid_until: Optional[date] = None


class ProcedureInvoiceRequest(BaseModel):
    treatment_ids: List[int] = Field(..., min_length=1)
    procedure_cost: Optional[Money] = Field(None, ge=0)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class PrescriptionInvoiceRequest(BaseModel):
    tax: Money = Field(default=Decimal("0"), ge=0)
    discount: Money = Field(default=Decimal("0"), ge=0)
    paid_amount: Money = Field(default=Decimal("0"), ge=0)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class PrescriptionResponse(BaseModel):
    id: int
    prescription_number: str
    patient_id: int
    dentist_id: int
    treatment_id: Optional[int] = None
    invoice_id: Optional[int] = None
    medications: List[MedicationResponse] = []
    instructions: Optional[str] = None
    prescription_date: date
    valid_until: Optional[date] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== LAB WORK SCHEMAS ====================

class LabWorkCreate(BaseModel):
    patient_id: int
    dentist_id: int
    treatment_id: Optional[int] = None
    lab_name: str = Field(..., min_length=1)
    work_type: LabWorkTypeEnum
    description: str = Field(..., min_length=1)
    request_date: Optional[date] = None
    expected_date: Optional[date] = None
    cost: Money = Field(default=Decimal("0"), ge=0)
    paid_amount: Money = Field(default=Decimal("0"), ge=0)
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class LabWorkUpdate(BaseModel):
    status: Optional[LabWorkStatusEnum] = None
    expected_date: Optional[date] = None
    completed_date: Optional[date] = None
    cost: Optional[Money] = Field(None, ge=0)
    paid_amount: Optional[Money] = Field(None, ge=0)
    tracking_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, v):
        if isinstance(v, str) and v.strip().lower() == "in_progress":
            return LabWorkStatusEnum.IN_PROGRESS.value
        return v

    @field_validator("status", "cost", "paid_amount")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class LabWorkResponse(BaseModel):
    id: int
    patient_id: int
    dentist_id: int
    treatment_id: Optional[int] = None
    lab_name: str
    work_type: str
    description: str
    request_date: date
    expected_date: Optional[date] = None
    completed_date: Optional[date] = None
    status: str
    cost: Money
    paid_amount: Money
    payment_status: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ==================== TREATMENT SCHEMAS ====================

class ProcedureCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Money = Field(..., ge=0)
    duration: int = Field(..., ge=0)
    sessions: int = Field(default=1, ge=1)


class ProcedureResponse(ProcedureCreate):
    id: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


def _parse_treatment_status(v):
    if v is None:
        return v
    return parse_treatment_status(v).value


class TreatmentCreate(BaseModel):
    patient_id: int
    dentist_id: int
    procedure_id: Optional[int] = None
    treatment_type: TreatmentTypeEnum
    description: str = Field(..., min_length=1)
    teeth: List[str] = []
    status: str = "planned"
    start_date: Optional[date] = None
    planned_sessions: Optional[int] = Field(None, ge=1)
    estimated_cost: Optional[Money] = Field(None, ge=0)
    actual_cost: Optional[Money] = Field(None, ge=0)
    paid_amount: Money = Field(default=Decimal("0"), ge=0)
    advance_paid: Money = Field(default=Decimal("0"), ge=0)
    progress_percent: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _parse_treatment_status(v)


class TreatmentUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    teeth: Optional[List[str]] = None
    status: Optional[str] = None
    planned_sessions: Optional[int] = Field(None, ge=1)
    estimated_cost: Optional[Money] = Field(None, ge=0)
    actual_cost: Optional[Money] = Field(None, ge=0)
    paid_amount: Optional[Money] = Field(None, ge=0)
    advance_paid: Optional[Money] = Field(None, ge=0)
    progress_percent: Optional[int] = Field(None, ge=0, le=100)
    completion_date: Optional[datetime] = None
    invoice_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _parse_treatment_status(v)

    @field_validator("description", "teeth", "status", "planned_sessions", "paid_amount", "advance_paid")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class SessionCreate(BaseModel):
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class SessionUpdate(BaseModel):
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class SessionResponse(BaseModel):
    id: int
    date: datetime
    duration: Optional[int] = None
    notes: Optional[str] = None
    performed_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TreatmentProgressResponse(BaseModel):
    overall_percent: int
    sessions_percent: int
    payment_percent: int
    status_percent: int
    sessions_completed: int
    planned_sessions: int
    total_cost: Money
    amount_paid: Money
    balance: Money
    is_manual: bool

    model_config = ConfigDict(from_attributes=True)


class TreatmentResponse(BaseModel):
    id: int
    patient_id: int
    dentist_id: int
    procedure_id: Optional[int] = None
    invoice_id: Optional[int] = None
    treatment_type: str
    description: str
    teeth: List[str] = []
    status: str
    start_date: Optional[date] = None
    completion_date: Optional[datetime] = None
    planned_sessions: int
    estimated_cost: Optional[Money] = None
    actual_cost: Optional[Money] = None
    paid_amount: Money
    advance_paid: Money
    progress_percent: Optional[int] = None
    sessions: List[SessionResponse] = []
    progress: TreatmentProgressResponse
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== APPOINTMENT SCHEMAS ====================

class AppointmentTypeEnum(str, Enum):
    CHECKUP = "checkup"
    CLEANING = "cleaning"
    FILLING = "filling"
    EXTRACTION = "extraction"
    ROOT_CANAL = "root-canal"
    CROWN = "crown"
    CONSULTATION = "consultation"
    EMERGENCY = "emergency"
    OTHER = "other"


class AppointmentCreate(BaseModel):
    patient_id: int
    dentist_id: int
    appointment_date: datetime
    duration: int = Field(default=30, ge=MIN_DURATION, le=MAX_DURATION)
    appointment_type: AppointmentTypeEnum
    notes: Optional[str] = None

    @field_validator("appointment_date")
    @classmethod
    def clinic_time(cls, v):
        return to_clinic_time(v)


class AppointmentUpdate(BaseModel):
    """Reschedule or re-describe a booking; status moves through its own actions"""
    dentist_id: Optional[int] = None
    appointment_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=MIN_DURATION, le=MAX_DURATION)
    appointment_type: Optional[AppointmentTypeEnum] = None
    notes: Optional[str] = None
    reminder_sent: Optional[bool] = None

    @field_validator("appointment_date")
    @classmethod
    def clinic_time(cls, v):
        return to_clinic_time(v)

    @field_validator("dentist_id", "appointment_date", "duration", "appointment_type", "reminder_sent")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        return _reject_null(v, info)


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    dentist_id: int
    appointment_date: datetime
    end_time: datetime
    duration: int
    appointment_type: str
    status: str
    notes: Optional[str] = None
    reminder_sent: bool = False
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SlotResponse(BaseModel):
    start: datetime
    end: datetime
    available: bool


class CalendarEvent(BaseModel):
    id: int
    title: str
    start: datetime
    end: datetime
    dentist: str
    appointment_type: str
    status: str
    phone: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class AuditLogResponse(BaseModel):
    id: int
    timestamp: datetime
    username: Optional[str] = None
    ip_address: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[int] = None
    resource_code: Optional[str] = None
    description: Optional[str] = None
    old_values: Optional[str] = None
    new_values: Optional[str] = None
    status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
