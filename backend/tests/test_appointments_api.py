import pytest

from conftest import login

DAY = "2030-03-04"


@pytest.fixture
def book(client, admin_headers, patient, dentist):
    def _book(start, patient_id=None, dentist_id=None, **fields):
        body = {
            "patient_id": patient_id or patient["id"],
            "dentist_id": dentist_id or dentist["id"],
            "appointment_date": f"{DAY}T{start}:00",
            "appointment_type": "checkup",
        }
        body.update(fields)
        return client.post("/api/v1/appointments", headers=admin_headers, json=body)
    return _book


@pytest.fixture
def other_patient(client, admin_headers):
    return client.post("/api/v1/patients", headers=admin_headers, json={
        "first_name": "Bo", "last_name": "Incisor", "date_of_birth": "1985-02-01",
        "gender": "male", "phone": "+1 555 0199",
    }).json()


def test_booking_reports_its_end_time(book):
    response = book("10:00", duration=45, notes="New patient")
    assert response.status_code == 201, response.text
    appointment = response.json()
    assert appointment["status"] == "scheduled"
    assert appointment["end_time"] == f"{DAY}T10:45:00"


def test_dentist_cannot_be_double_booked(book, other_patient):
    assert book("10:00", duration=60).status_code == 201

    clash = book("10:30", patient_id=other_patient["id"])
    assert clash.status_code == 400
    assert "dentist" in clash.json()["detail"]

    assert book("11:00", patient_id=other_patient["id"]).status_code == 201


def test_patient_cannot_be_in_two_chairs(book, make_user):
    other_dentist = make_user("drfloss", "dentist")
    assert book("14:00").status_code == 201

    clash = book("14:15", dentist_id=other_dentist["id"])
    assert clash.status_code == 400
    assert "patient" in clash.json()["detail"]


def test_status_actions(client, admin_headers, book):
    appointment = book("09:00").json()
    url = f"/api/v1/appointments/{appointment['id']}"

    assert client.post(f"{url}/confirm", headers=admin_headers).json()["status"] == "confirmed"
    assert client.post(f"{url}/confirm", headers=admin_headers).status_code == 400
    assert client.post(f"{url}/complete", headers=admin_headers).json()["status"] == "completed"

    for action in ("no-show", "complete"):
        assert client.post(f"{url}/{action}", headers=admin_headers).status_code == 400
    assert client.post(f"{url}/cancel", headers=admin_headers, json={}).status_code == 400
    assert client.put(url, headers=admin_headers, json={"notes": "late"}).status_code == 400

    missing = client.post("/api/v1/appointments/999/confirm", headers=admin_headers)
    assert missing.status_code == 404


def test_no_show_is_recorded(client, admin_headers, book):
    appointment = book("09:00").json()
    response = client.post(f"/api/v1/appointments/{appointment['id']}/no-show", headers=admin_headers)
    assert response.json()["status"] == "no-show"

    listed = client.get("/api/v1/appointments", headers=admin_headers, params={"status": "no_show"}).json()
    assert [a["id"] for a in listed] == [appointment["id"]]


def test_cancelling_frees_the_slot(client, admin_headers, book, dentist):
    appointment = book("09:00").json()
    response = client.post(f"/api/v1/appointments/{appointment['id']}/cancel", headers=admin_headers,
                           json={"reason": "Patient is travelling"})
    assert response.status_code == 200
    cancelled = response.json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Patient is travelling"
    assert cancelled["cancelled_by"] is not None
    assert cancelled["cancelled_at"] is not None

    assert book("09:00").status_code == 201


def test_available_slots(client, admin_headers, book, dentist):
    book("09:00", duration=60)
    book("16:30")

    response = client.get("/api/v1/appointments/available-slots", headers=admin_headers,
                          params={"dentist_id": dentist["id"], "day": DAY})
    assert response.status_code == 200
    slots = response.json()
    assert len(slots) == 16
    taken = [slot["start"][11:16] for slot in slots if not slot["available"]]
    assert taken == ["09:00", "09:30", "16:30"]

    unknown = client.get("/api/v1/appointments/available-slots", headers=admin_headers,
                         params={"dentist_id": 999, "day": DAY})
    assert unknown.status_code == 404


def test_reschedule_checks_the_new_slot(client, admin_headers, book, other_patient):
    first = book("09:00").json()
    book("10:00", patient_id=other_patient["id"])
    url = f"/api/v1/appointments/{first['id']}"

    assert client.put(url, headers=admin_headers, json={"appointment_date": f"{DAY}T10:15:00"}).status_code == 400
    moved = client.put(url, headers=admin_headers, json={"appointment_date": f"{DAY}T09:15:00", "duration": 45})
    assert moved.status_code == 200
    assert moved.json()["end_time"] == f"{DAY}T10:00:00"

    assert client.put(url, headers=admin_headers, json={"duration": None}).status_code == 422
    assert client.put(url, headers=admin_headers, json={"duration": 5}).status_code == 422


def test_calendar_and_day_listing(client, admin_headers, book, dentist, patient):
    book("11:00", duration=30)
    events = client.get("/api/v1/appointments/calendar", headers=admin_headers, params={
        "start": f"{DAY}T00:00:00", "end": "2030-03-05T00:00:00", "dentist_id": dentist["id"],
    }).json()
    assert len(events) == 1
    assert events[0]["title"] == patient["full_name"]
    assert events[0]["dentist"] == "Dr. Drsmile"
    assert events[0]["end"] == f"{DAY}T11:30:00"

    backwards = client.get("/api/v1/appointments/calendar", headers=admin_headers, params={
        "start": "2030-03-05T00:00:00", "end": f"{DAY}T00:00:00",
    })
    assert backwards.status_code == 400

    assert len(client.get("/api/v1/appointments", headers=admin_headers, params={"day": DAY}).json()) == 1
    assert client.get("/api/v1/appointments", headers=admin_headers, params={"day": "2030-03-05"}).json() == []


def test_hygienists_cannot_book(client, make_user, patient, dentist):
    make_user("hygie", "hygienist")
    headers = login(client, "hygie", "password-123")
    response = client.post("/api/v1/appointments", headers=headers, json={
        "patient_id": patient["id"], "dentist_id": dentist["id"],
        "appointment_date": f"{DAY}T09:00:00", "appointment_type": "cleaning",
    })
    assert response.status_code == 403
