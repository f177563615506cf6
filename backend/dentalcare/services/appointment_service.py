"""
Appointment Service - bookings, status changes, free slots
"""
from typing import Optional, List
from datetime import date, datetime, timedelta
import logging

from sqlalchemy.orm import Session, joinedload

from dentalcare.core.config import settings
from dentalcare.models import Appointment, AppointmentStatus, Patient, User, utcnow
from dentalcare.schemas import AppointmentCreate, AppointmentUpdate
from dentalcare.services.scheduling import (
    ACTIVE_STATUSES, computed_end_time, day_slots, free_slots, overlaps, parse_clock,
    parse_appointment_status
)

logger = logging.getLogger(__name__)

# Target status -> statuses it may be reached from
TRANSITIONS = {
    AppointmentStatus.CONFIRMED: (AppointmentStatus.SCHEDULED.value,),
    AppointmentStatus.COMPLETED: ACTIVE_STATUSES,
    AppointmentStatus.NO_SHOW: (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value),
    AppointmentStatus.CANCELLED: (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value),
}


class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def get_all(self, patient_id: int = None, dentist_id: int = None, status: str = None,
                day: date = None) -> List[Appointment]:
        query = self.db.query(Appointment)
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)
        if dentist_id:
            query = query.filter(Appointment.dentist_id == dentist_id)
        if status:
            query = query.filter(Appointment.status == parse_appointment_status(status).value)
        if day:
            start = datetime.combine(day, datetime.min.time())
            query = query.filter(
                Appointment.appointment_date >= start,
                Appointment.appointment_date < start + timedelta(days=1)
            )
        return query.order_by(Appointment.appointment_date.desc(), Appointment.id.desc()).all()

    def calendar(self, start: datetime, end: datetime, dentist_id: int = None) -> List[dict]:
        if end <= start:
            raise ValueError("Calendar end must be after its start")
        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.dentist)
        ).filter(Appointment.appointment_date >= start, Appointment.appointment_date < end)
        if dentist_id:
            query = query.filter(Appointment.dentist_id == dentist_id)

        events = []
        for appointment in query.order_by(Appointment.appointment_date, Appointment.id).all():
            dentist = appointment.dentist
            dentist_name = " ".join(filter(None, [dentist.first_name, dentist.last_name])) or dentist.username
            events.append({
                "id": appointment.id,
                "title": appointment.patient.full_name,
                "start": appointment.appointment_date,
                "end": appointment.end_time,
                "dentist": f"Dr. {dentist_name}",
                "appointment_type": appointment.appointment_type,
                "status": appointment.status,
                "phone": appointment.patient.phone,
            })
        return events

    def _booked(self, dentist_id: int = None, patient_id: int = None, start: datetime = None,
                end: datetime = None, exclude_id: int = None) -> List[Appointment]:
        """Active bookings of a dentist or patient that overlap [start, end)"""
        query = self.db.query(Appointment).filter(
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.appointment_date < end,
            # no single booking runs past a day
            Appointment.appointment_date >= start - timedelta(days=1),
        )
        if dentist_id is not None:
            query = query.filter(Appointment.dentist_id == dentist_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return [
            booking for booking in query.all()
            if overlaps(start, end, booking.appointment_date, booking.end_time)
        ]

    def _check_free(self, appointment: Appointment):
        start = appointment.appointment_date
        end = computed_end_time(start, appointment.duration)
        if self._booked(dentist_id=appointment.dentist_id, start=start, end=end, exclude_id=appointment.id):
            logger.warning(f"Booking refused: dentist {appointment.dentist_id} is busy at {start:%Y-%m-%d %H:%M}")
            raise ValueError("The dentist already has an appointment in this time slot")
        if self._booked(patient_id=appointment.patient_id, start=start, end=end, exclude_id=appointment.id):
            logger.warning(f"Booking refused: patient {appointment.patient_id} is busy at {start:%Y-%m-%d %H:%M}")
            raise ValueError("The patient already has an appointment in this time slot")

    def _check_dentist(self, dentist_id: int):
        if not self.db.query(User.id).filter(User.id == dentist_id, User.is_active == True).first():
            raise ValueError(f"Dentist {dentist_id} not found")

    def create(self, data: AppointmentCreate) -> Appointment:
        if not self.db.query(Patient.id).filter(Patient.id == data.patient_id).first():
            raise ValueError(f"Patient {data.patient_id} not found")
        self._check_dentist(data.dentist_id)

        values = data.model_dump()
        values["appointment_type"] = values["appointment_type"].value
        appointment = Appointment(**values, status=AppointmentStatus.SCHEDULED.value)
        self._check_free(appointment)

        self.db.add(appointment)
        self.db.flush()
        logger.info(
            f"Booked appointment {appointment.id} for patient {appointment.patient_id} "
            f"with dentist {appointment.dentist_id} at {appointment.appointment_date:%Y-%m-%d %H:%M}"
        )
        return appointment

    def update(self, appointment_id: int, data: AppointmentUpdate) -> Optional[Appointment]:
        appointment = self.get_by_id(appointment_id)
        if not appointment:
            return None
        if appointment.status not in ACTIVE_STATUSES:
            raise ValueError(f"A {appointment.status} appointment cannot be changed")

        changes = data.model_dump(exclude_unset=True)
        if "appointment_type" in changes:
            changes["appointment_type"] = changes["appointment_type"].value
        if "dentist_id" in changes:
            self._check_dentist(changes["dentist_id"])
        for key, value in changes.items():
            setattr(appointment, key, value)

        if changes.keys() & {"dentist_id", "appointment_date", "duration"}:
            self._check_free(appointment)
        self.db.flush()
        return appointment

    def _move(self, appointment_id: int, target: AppointmentStatus) -> Optional[Appointment]:
        appointment = self.get_by_id(appointment_id)
        if not appointment:
            return None
        if appointment.status not in TRANSITIONS[target]:
            logger.warning(f"Refused {appointment.status} -> {target.value} on appointment {appointment.id}")
            raise ValueError(f"A {appointment.status} appointment cannot be marked {target.value}")
        appointment.status = target.value
        return appointment

    def confirm(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self._move(appointment_id, AppointmentStatus.CONFIRMED)
        if appointment:
            self.db.flush()
        return appointment

    def complete(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self._move(appointment_id, AppointmentStatus.COMPLETED)
        if appointment:
            self.db.flush()
        return appointment

    def mark_no_show(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self._move(appointment_id, AppointmentStatus.NO_SHOW)
        if appointment:
            self.db.flush()
            logger.info(f"Appointment {appointment.id} marked no-show")
        return appointment

    def cancel(self, appointment_id: int, reason: str = None, user_id: int = None) -> Optional[Appointment]:
        appointment = self._move(appointment_id, AppointmentStatus.CANCELLED)
        if not appointment:
            return None
        appointment.cancellation_reason = reason
        appointment.cancelled_by = user_id
        appointment.cancelled_at = utcnow()
        self.db.flush()
        logger.info(f"Cancelled appointment {appointment.id}")
        return appointment

    def available_slots(self, dentist_id: int, day: date) -> Optional[List[dict]]:
        """
        The day's slots between opening and closing time, each flagged with
        whether the dentist is free for all of it. None if the dentist is unknown.
        """
        if not self.db.query(User.id).filter(User.id == dentist_id).first():
            return None
        slot_minutes = settings.APPOINTMENT_SLOT_MINUTES
        slots = day_slots(day, parse_clock(settings.CLINIC_OPENS_AT),
                          parse_clock(settings.CLINIC_CLOSES_AT), slot_minutes)
        start = datetime.combine(day, datetime.min.time())
        booked = self._booked(dentist_id=dentist_id, start=start, end=start + timedelta(days=1))
        return free_slots(slots, slot_minutes, [(b.appointment_date, b.end_time) for b in booked])
