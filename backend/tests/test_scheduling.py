from datetime import date, datetime, time, timezone

import pytest

from dentalcare.models import AppointmentStatus
from dentalcare.services.scheduling import (
    computed_end_time, day_slots, free_slots, overlaps, parse_appointment_status, to_clinic_time
)


def test_end_time_adds_the_duration():
    assert computed_end_time(datetime(2030, 3, 4, 11, 45), 30) == datetime(2030, 3, 4, 12, 15)
    assert computed_end_time(datetime(2030, 3, 4, 23, 30), 60) == datetime(2030, 3, 5, 0, 30)


def test_back_to_back_bookings_do_not_overlap():
    nine, half_nine, ten = (datetime(2030, 3, 4, 9, m) for m in (0, 30, 59))
    assert not overlaps(nine, half_nine, half_nine, ten)
    assert overlaps(nine, ten, half_nine, ten)


def test_last_slot_ends_by_closing_time():
    slots = day_slots(date(2030, 3, 4), time(9, 0), time(10, 45), 30)
    assert [slot.time() for slot in slots] == [time(9, 0), time(9, 30), time(10, 0)]
    with pytest.raises(ValueError):
        day_slots(date(2030, 3, 4), time(9, 0), time(10, 0), 0)


def test_partly_booked_slot_is_not_free():
    slots = day_slots(date(2030, 3, 4), time(9, 0), time(10, 30), 30)
    booked = [(datetime(2030, 3, 4, 9, 15), datetime(2030, 3, 4, 9, 45))]
    assert [slot["available"] for slot in free_slots(slots, 30, booked)] == [False, False, True]


def test_legacy_status_spellings():
    assert parse_appointment_status("no_show") is AppointmentStatus.NO_SHOW
    assert parse_appointment_status("In_Progress") is AppointmentStatus.IN_PROGRESS
    with pytest.raises(ValueError):
        parse_appointment_status("postponed")


def test_aware_times_become_clinic_wall_clock():
    # CLINIC_TIMEZONE defaults to UTC
    aware = datetime(2030, 3, 4, 9, 0, tzinfo=timezone.utc)
    assert to_clinic_time(aware) == datetime(2030, 3, 4, 9, 0)
    assert to_clinic_time(datetime(2030, 3, 4, 9, 0)).tzinfo is None
