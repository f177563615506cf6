"""
Staff API Routes
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import require_admin
from dentalcare.schemas import StaffCreate, StaffResponse
from dentalcare.services.staff_service import StaffService

router = APIRouter(prefix="/staff", tags=["Staff"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[StaffResponse])
async def list_staff(
    department: str = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db)
):
    return StaffService(db).get_all(department, include_inactive)


@router.post("", response_model=StaffResponse, status_code=201)
async def create_staff(
    staff_data: StaffCreate,
    db: Session = Depends(get_db)
):
    try:
        staff = StaffService(db).create(staff_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return staff
