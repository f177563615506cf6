"""
Staff Service - employment records
"""
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload

from dentalcare.models import Staff, User
from dentalcare.schemas import StaffCreate
from dentalcare.services.numbering import NumberingService


class StaffService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        return self.db.query(Staff).options(joinedload(Staff.user)).filter(Staff.id == staff_id).first()

    def get_all(self, department: str = None, include_inactive: bool = False) -> List[Staff]:
        query = self.db.query(Staff).options(joinedload(Staff.user))
        if not include_inactive:
            query = query.filter(Staff.is_active == True)
        if department:
            query = query.filter(Staff.department == department)
        return query.order_by(Staff.employee_id).all()

    def create(self, staff_data: StaffCreate) -> Staff:
        if not self.db.query(User.id).filter(User.id == staff_data.user_id).first():
            raise ValueError(f"User {staff_data.user_id} not found")
        if self.db.query(Staff.id).filter(Staff.user_id == staff_data.user_id).first():
            raise ValueError("This user already has a staff record")

        data = staff_data.model_dump()
        if data["employee_id"] and self.db.query(Staff.id).filter(
            Staff.employee_id == data["employee_id"]
        ).first():
            raise ValueError(f"Employee ID {data['employee_id']} is already in use")

        staff = Staff(**data)
        NumberingService(self.db).assign(staff, "staff")
        self.db.add(staff)
        self.db.flush()
        return staff
