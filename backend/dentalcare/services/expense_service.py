"""
Expense Service - clinic expenses, approval and category statistics
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import date
import logging

from dentalcare.models import Expense, ApprovalStatus, PaymentStatus
from dentalcare.schemas import ExpenseCreate, ExpenseUpdate
from dentalcare.services.billing_math import ZERO, money
from dentalcare.services.financials import prepare

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        return self.db.query(Expense).filter(Expense.id == expense_id).first()

    def get_all(self, category: str = None, approval_status: str = None,
                start_date: date = None, end_date: date = None) -> List[Expense]:
        query = self.db.query(Expense)
        if category:
            query = query.filter(Expense.category == category)
        if approval_status:
            query = query.filter(Expense.approval_status == approval_status)
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)
        return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()

    def create(self, expense_data: ExpenseCreate, user_id: int = None) -> Expense:
        data = expense_data.model_dump()
        expense = Expense(
            category=data["category"].value,
            description=data["description"],
            amount=data["amount"],
            expense_date=data["expense_date"] or date.today(),
            vendor=data["vendor"],
            payment_method=data["payment_method"].value,
            paid_amount=data["paid_amount"],
            payment_status=PaymentStatus.PENDING.value,
            receipt_number=data["receipt_number"],
            notes=data["notes"],
            approval_status=ApprovalStatus.PENDING.value,
            created_by=user_id,
        )
        prepare(self.db, expense)
        self.db.add(expense)
        self.db.flush()
        logger.info(f"Recorded expense {expense.expense_id} amount={expense.amount}")
        return expense

    def update(self, expense_id: int, expense_data: ExpenseUpdate) -> Optional[Expense]:
        expense = self.get_by_id(expense_id)
        if not expense:
            return None
        if expense.approval_status == ApprovalStatus.APPROVED.value and expense_data.amount is not None \
                and money(expense_data.amount) != money(expense.amount):
            raise ValueError("The amount of an approved expense cannot be changed")

        for key, value in expense_data.model_dump(exclude_unset=True).items():
            if key in ("category", "payment_method") and value is not None:
                value = value.value
            setattr(expense, key, value)

        prepare(self.db, expense)
        self.db.flush()
        return expense

    def set_approval(self, expense_id: int, status: str, user_id: int, notes: str = None) -> Optional[Expense]:
        expense = self.get_by_id(expense_id)
        if not expense:
            return None
        if expense.approval_status != ApprovalStatus.PENDING.value:
            raise ValueError(f"Expense {expense.expense_id} is already {expense.approval_status}")

        expense.approval_status = ApprovalStatus(status).value
        expense.approved_by = user_id
        if notes:
            expense.notes = f"{expense.notes}\n{notes}".strip() if expense.notes else notes
        self.db.flush()
        return expense

    def get_category_stats(self, start_date: date = None, end_date: date = None) -> List[dict]:
        query = self.db.query(
            Expense.category,
            func.count(Expense.id),
            func.sum(Expense.amount),
            func.sum(Expense.paid_amount),
        ).filter(Expense.approval_status != ApprovalStatus.REJECTED.value)
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)

        stats = []
        for category, count, amount, paid in query.group_by(Expense.category).all():
            amount = money(amount or ZERO)
            paid = money(paid or ZERO)
            stats.append({
                "category": category,
                "count": count,
                "total_amount": amount,
                "total_paid": paid,
                "total_pending": money(max(ZERO, amount - paid)),
            })
        return sorted(stats, key=lambda row: row["total_amount"], reverse=True)
