"""
Expense API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_admin, require_finance
from dentalcare.schemas import (
    ExpenseCreate, ExpenseUpdate, ExpenseResponse, ExpenseApprovalRequest, ExpenseCategoryStats
)
from dentalcare.services.expense_service import ExpenseService
from dentalcare.services.audit_service import AuditService, AuditAction, snapshot
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    category: str = None,
    approval_status: str = None,
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    return ExpenseService(db).get_all(category, approval_status, start_date, end_date)


@router.get("/stats/summary", response_model=List[ExpenseCategoryStats])
async def get_expense_stats(
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    """Totals per category; rejected expenses are left out"""
    return ExpenseService(db).get_category_stats(start_date, end_date)


@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    expense_data: ExpenseCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    try:
        expense = ExpenseService(db).create(expense_data, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, expense, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return expense


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    expense = ExpenseService(db).get_by_id(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_finance)
):
    service = ExpenseService(db)
    current = service.get_by_id(expense_id)
    if not current:
        raise HTTPException(status_code=404, detail="Expense not found")
    before = snapshot(current)

    try:
        expense = service.update(expense_id, expense_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.UPDATE, expense, old_values=before, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return expense


@router.post("/{expense_id}/approve", response_model=ExpenseResponse)
async def approve_expense(
    expense_id: int,
    approval: ExpenseApprovalRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin)
):
    try:
        expense = ExpenseService(db).set_approval(expense_id, approval.status, current_user.id, approval.notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    AuditService(db).log(
        action=AuditAction.EXPENSE_APPROVED if approval.status == "approved" else AuditAction.EXPENSE_REJECTED,
        resource_type="Expense",
        resource_id=expense.id,
        resource_code=expense.expense_id,
        description=approval.notes,
        new_values={"approval_status": expense.approval_status, "amount": expense.amount},
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return expense
