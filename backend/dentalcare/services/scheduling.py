"""
Appointment book arithmetic

Plain functions over datetimes; the service decides what is stored.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from dentalcare.core.config import settings
from dentalcare.models import AppointmentStatus

MIN_DURATION = 15
MAX_DURATION = 8 * 60

# Appointments that still hold their chair time
ACTIVE_STATUSES = (
    AppointmentStatus.SCHEDULED.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.IN_PROGRESS.value,
)

LEGACY_APPOINTMENT_STATUS = {
    "in_progress": AppointmentStatus.IN_PROGRESS,
    "no_show": AppointmentStatus.NO_SHOW,
    "noshow": AppointmentStatus.NO_SHOW,
}


def parse_appointment_status(value) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    raw = str(value or "").strip().lower()
    if raw in LEGACY_APPOINTMENT_STATUS:
        return LEGACY_APPOINTMENT_STATUS[raw]
    try:
        return AppointmentStatus(raw)
    except ValueError:
        raise ValueError(f"Unknown appointment status: {value!r}")


def to_clinic_time(value: Optional[datetime]) -> Optional[datetime]:
    """Bookings are stored as naive clinic wall-clock time"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.CLINIC_TIMEZONE)).replace(tzinfo=None)


def computed_end_time(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes or 0)


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open intervals, so back-to-back bookings do not clash"""
    return start < other_end and other_start < end


def parse_clock(value: str) -> time:
    """Parse an HH:MM setting"""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def day_slots(day: date, opens_at: time, closes_at: time, slot_minutes: int) -> List[datetime]:
    """Slot start times for one day; a slot must end by closing time"""
    if slot_minutes <= 0:
        raise ValueError("Slot length must be positive")
    step = timedelta(minutes=slot_minutes)
    current = datetime.combine(day, opens_at)
    closing = datetime.combine(day, closes_at)
    slots = []
    while current + step <= closing:
        slots.append(current)
        current += step
    return slots


def free_slots(slots: Iterable[datetime], slot_minutes: int,
               booked: Iterable[Tuple[datetime, datetime]]) -> List[dict]:
    booked = list(booked)
    step = timedelta(minutes=slot_minutes)
    return [
        {
            "start": slot,
            "end": slot + step,
            "available": not any(overlaps(slot, slot + step, start, end) for start, end in booked),
        }
        for slot in slots
    ]
