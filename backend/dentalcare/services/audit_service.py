"""
Audit trail for money movements and irreversible actions
"""
from typing import Dict, List, Optional
import json
import logging

from sqlalchemy import desc
from sqlalchemy.orm import Session

from dentalcare.models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    USER_CREATED = "USER_CREATED"

    CREATE = "CREATE"
    UPDATE = "UPDATE"

    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    INVOICE_CANCELLED = "INVOICE_CANCELLED"
    INVOICE_OVERDUE = "INVOICE_OVERDUE"
    EXPENSE_APPROVED = "EXPENSE_APPROVED"
    EXPENSE_REJECTED = "EXPENSE_REJECTED"
    ORDER_RECEIVED = "ORDER_RECEIVED"
    CLAIM_UPDATED = "CLAIM_UPDATED"


# Fields recorded in CREATE/UPDATE entries, per audited model
TRACKED_FIELDS = {
    "BillingInvoice": ("invoice_type", "status", "subtotal", "tax", "discount", "total", "paid_amount", "due_date"),
    "Expense": ("category", "amount", "paid_amount", "payment_status", "approval_status"),
    "InventoryOrder": ("status", "subtotal", "expected_date"),
    "LabWork": ("status", "cost", "paid_amount", "payment_status"),
    "Treatment": ("status", "planned_sessions", "estimated_cost", "actual_cost", "progress_percent"),
}

CODE_FIELDS = ("invoice_number", "expense_id", "order_number", "claim_id", "prescription_number")


def snapshot(document) -> Dict:
    """The tracked fields of an ORM document, as they are now"""
    fields = TRACKED_FIELDS.get(type(document).__name__, ())
    return {name: getattr(document, name) for name in fields}


def _to_json(values: Optional[Dict]) -> Optional[str]:
    # Decimal and date values are stored as their string form
    return json.dumps(values, default=str, sort_keys=True) if values else None


class AuditService:
    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: str,
        resource_type: str,
        resource_id: Optional[int] = None,
        resource_code: Optional[str] = None,
        description: Optional[str] = None,
        old_values: Optional[Dict] = None,
        new_values: Optional[Dict] = None,
        user=None,
        ip_address: Optional[str] = None,
        status: str = "success",
        error_message: Optional[str] = None
    ) -> Optional[AuditLog]:
        """
        Queue an audit entry on the caller's session.

        The entry is written by the caller's commit, together with the change
        it describes. Building the entry never raises: a snapshot that cannot
        be serialised is logged and the entry is skipped.
        """
        try:
            entry = AuditLog(
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                resource_code=resource_code,
                description=description,
                old_values=_to_json(old_values),
                new_values=_to_json(new_values),
                user_id=getattr(user, "id", None),
                username=getattr(user, "username", None),
                ip_address=ip_address,
                status=status,
                error_message=error_message,
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Skipping audit entry {action} on {resource_type}({resource_id}): {e}")
            return None

        self.db.add(entry)
        logger.info(f"Audit: {action} {resource_type}({resource_code or resource_id}) by {entry.username} [{status}]")
        return entry

    def log_change(self, action: str, document, old_values: Optional[Dict] = None,
                   user=None, ip_address: Optional[str] = None) -> Optional[AuditLog]:
        """CREATE/UPDATE entry for a flushed document, with before and after snapshots"""
        code = next((getattr(document, f) for f in CODE_FIELDS if getattr(document, f, None)), None)
        return self.log(
            action=action,
            resource_type=type(document).__name__,
            resource_id=document.id,
            resource_code=code,
            old_values=old_values,
            new_values=snapshot(document),
            user=user,
            ip_address=ip_address,
        )

    def get_by_resource(self, resource_type: str, resource_id: int) -> List[AuditLog]:
        return self.db.query(AuditLog).filter(
            AuditLog.resource_type == resource_type,
            AuditLog.resource_id == resource_id
        ).order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).all()

    def get_recent(self, action: Optional[str] = None, limit: int = 100) -> List[AuditLog]:
        query = self.db.query(AuditLog)
        if action:
            query = query.filter(AuditLog.action == action)
        return query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit).all()
