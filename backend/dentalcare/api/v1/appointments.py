"""
Appointment API Routes
"""
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_front_desk
from dentalcare.schemas import (
    AppointmentCreate, AppointmentUpdate, AppointmentCancel, AppointmentResponse,
    SlotResponse, CalendarEvent
)
from dentalcare.services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    patient_id: int = None,
    dentist_id: int = None,
    status: str = None,
    day: date = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    try:
        return AppointmentService(db).get_all(patient_id, dentist_id, status, day)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/calendar", response_model=List[CalendarEvent])
async def get_calendar(
    start: datetime,
    end: datetime,
    dentist_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    try:
        return AppointmentService(db).calendar(start, end, dentist_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/available-slots", response_model=List[SlotResponse])
async def get_available_slots(
    dentist_id: int,
    day: date,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    slots = AppointmentService(db).available_slots(dentist_id, day)
    if slots is None:
        raise HTTPException(status_code=404, detail="Dentist not found")
    return slots


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    appointment_data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    try:
        appointment = AppointmentService(db).create(appointment_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return appointment


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    appointment = AppointmentService(db).get_by_id(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    try:
        appointment = AppointmentService(db).update(appointment_id, appointment_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    db.commit()
    return appointment


def _change_status(db: Session, appointment_id: int, action, *args):
    try:
        appointment = action(appointment_id, *args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    db.commit()
    return appointment


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    return _change_status(db, appointment_id, AppointmentService(db).confirm)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    return _change_status(db, appointment_id, AppointmentService(db).complete)


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
async def mark_no_show(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    return _change_status(db, appointment_id, AppointmentService(db).mark_no_show)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    change: AppointmentCancel,
    db: Session = Depends(get_db),
    current_user=Depends(require_front_desk)
):
    """Cancelling frees the slot; the booking is kept with who cancelled it and why"""
    return _change_status(db, appointment_id, AppointmentService(db).cancel, change.reason, current_user.id)
