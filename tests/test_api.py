from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from clinic import maintenance
from clinic.database import engine, create_db_and_tables
from clinic.db.models import Appointment, User
from clinic.infrastructure.rate_limit import get_rate_limiter
from clinic.main import app
from clinic.security import create_access_token


def next_weekday(days_ahead: int = 3):
    day = datetime.now().date() + timedelta(days=days_ahead)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def auth(user_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(maintenance.settings, "MAINTENANCE_FILE", str(tmp_path / "maintenance.lock"))
    get_rate_limiter.cache_clear()
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    with Session(engine) as session:
        session.add(User(id="admin-1", name="Admin", role="admin"))
        session.add(User(id="doctor-1", name="Dr Who", role="doctor"))
        session.add(User(id="patient-1", name="Pat", role="patient"))
        session.add(User(id="patient-2", name="Sam", role="patient"))
        session.commit()
    with TestClient(app) as c:
        yield c


ADMIN = auth("admin-1", "admin")
DOCTOR = auth("doctor-1", "doctor")
PATIENT = auth("patient-1", "patient")
OTHER = auth("patient-2", "patient")


@pytest.fixture
def catalog(client):
    doctor = client.post("/doctors/", json={
        "first_name": "Ada", "last_name": "Lovelace", "speciality": "cardiology", "user_id": "doctor-1",
    }, headers=ADMIN)
    assert doctor.status_code == 201
    doctor_id = doctor.json()["id"]
    service = client.post("/services/", json={
        "name": "Consultation", "duration": 30, "price": 60.0, "doctor_ids": [doctor_id],
    }, headers=ADMIN)
    assert service.status_code == 201
    return doctor_id, service.json()["id"]


def book(client, doctor_id, service_id, start, headers=PATIENT):
    return client.post("/appointments/", json={
        "doctor_id": doctor_id, "service_id": service_id, "start_time": start.isoformat(),
    }, headers=headers)


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["database"]["initialized"] is True


def test_authentication_required(client):
    assert client.get("/appointments/").status_code == 401
    assert client.get("/appointments/", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.get("/appointments/", headers=auth("ghost", "patient")).status_code == 401


def test_stored_role_wins_over_token_claim(client):
    forged = auth("patient-1", "admin")
    assert client.get("/admin/statistics", headers=forged).status_code == 403


def test_doctor_gets_default_hours(client, catalog):
    doctor_id, _ = catalog
    hours = client.get(f"/doctors/{doctor_id}/working-hours").json()["hours"]
    assert set(hours) == {"monday", "tuesday", "wednesday", "thursday", "friday"}
    assert hours["monday"] == {"start": "09:00", "end": "18:00", "lunch_start": "12:00", "lunch_end": "13:00"}


def test_booking_flow(client, catalog):
    doctor_id, service_id = catalog
    day = next_weekday()
    start = datetime.combine(day, time(10, 0))

    slots = client.get(f"/doctors/{doctor_id}/slots", params={"start_date": day.isoformat(), "end_date": day.isoformat()})
    assert slots.status_code == 200
    starts = [s["start"] for s in slots.json()["days"][0]["slots"]]
    assert start.isoformat() in starts

    booked = book(client, doctor_id, service_id, start)
    assert booked.status_code == 201
    appt = booked.json()
    assert appt["status"] == "pending"
    assert appt["end_time"] == (start + timedelta(minutes=30)).isoformat()

    again = book(client, doctor_id, service_id, start, headers=OTHER)
    assert again.status_code == 409
    assert again.json()["success"] is False

    slots = client.get(f"/doctors/{doctor_id}/slots", params={"start_date": day.isoformat(), "end_date": day.isoformat()})
    assert start.isoformat() not in [s["start"] for s in slots.json()["days"][0]["slots"]]

    confirmed = client.put(f"/appointments/{appt['id']}/confirm", headers=DOCTOR)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "scheduled"

    assert client.get(f"/appointments/{appt['id']}", headers=OTHER).status_code == 404

    inbox = client.get("/notifications/", headers=PATIENT).json()
    assert [n["type"] for n in inbox] == ["appointment_confirmation", "appointment_created"]
    assert client.get("/notifications/unread-count", headers=PATIENT).json()["count"] == 2

    cancelled = client.put(f"/appointments/{appt['id']}/cancel", json={"reason": "travel"}, headers=PATIENT)
    assert cancelled.json()["status"] == "cancelled"
    assert book(client, doctor_id, service_id, start, headers=OTHER).status_code == 201


def test_booking_rules(client, catalog):
    doctor_id, service_id = catalog
    tomorrow = datetime.now() + timedelta(hours=2)
    assert book(client, doctor_id, service_id, tomorrow).status_code == 400
    far = datetime.combine(next_weekday(80), time(10, 0))
    assert book(client, doctor_id, service_id, far).status_code == 400
    start = datetime.combine(next_weekday(), time(10, 0))
    assert book(client, doctor_id, service_id, start, headers=DOCTOR).status_code == 403


def test_booking_is_rate_limited(client, catalog):
    doctor_id, service_id = catalog
    day = next_weekday()
    codes = [
        book(client, doctor_id, service_id, datetime.combine(day, time(hour, 0))).status_code
        for hour in (9, 10, 11, 14)
    ]
    assert codes == [201, 201, 201, 429]


def test_invalid_slot_range(client, catalog):
    doctor_id, _ = catalog
    day = next_weekday()
    resp = client.get(f"/doctors/{doctor_id}/slots", params={
        "start_date": day.isoformat(), "end_date": (day - timedelta(days=1)).isoformat(),
    })
    assert resp.status_code == 400
    assert client.get("/doctors/999/slots", params={
        "start_date": day.isoformat(), "end_date": day.isoformat(),
    }).status_code == 404


def test_working_hours_permissions(client, catalog):
    doctor_id, _ = catalog
    body = {"hours": {"monday": {"start": "8:00", "end": "14:00", "lunch_start": "11:00", "lunch_end": "11:30"}}}
    assert client.put(f"/doctors/{doctor_id}/working-hours", json=body, headers=PATIENT).status_code == 403
    resp = client.put(f"/doctors/{doctor_id}/working-hours", json=body, headers=DOCTOR)
    assert resp.status_code == 200
    assert resp.json()["hours"] == {
        "monday": {"start": "08:00", "end": "14:00", "lunch_start": "11:00", "lunch_end": "11:30"}
    }


def test_unavailability_cancels_bookings(client, catalog):
    doctor_id, service_id = catalog
    day = next_weekday()
    appt = book(client, doctor_id, service_id, datetime.combine(day, time(10, 0))).json()

    resp = client.post(f"/doctors/{doctor_id}/unavailabilities", json={
        "start_time": datetime.combine(day, time(9, 0)).isoformat(),
        "end_time": datetime.combine(day, time(12, 0)).isoformat(),
        "reason": "conference",
    }, headers=DOCTOR)
    assert resp.status_code == 201

    cancelled = client.get(f"/appointments/{appt['id']}", headers=PATIENT).json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Doctor unavailable during this time"


def test_payment_flow(client, catalog):
    doctor_id, service_id = catalog
    appt = book(client, doctor_id, service_id, datetime.combine(next_weekday(), time(10, 0))).json()

    quote = client.get(f"/payments/amount/{appt['id']}", headers=PATIENT).json()
    assert quote["amount"] == 60.0

    paid = client.post("/payments/", json={
        "appointment_id": appt["id"], "method": "card", "details": {"token": "tok_1234"},
    }, headers=PATIENT)
    assert paid.status_code == 201
    result = paid.json()
    assert result["payment"]["status"] == "completed"
    assert result["invoice"]["number"] == f"{datetime.now().year}00001"
    assert result["invoice"]["total_amount"] == 72.0

    payment_id = result["payment"]["id"]
    assert client.post(f"/payments/{payment_id}/refund", json={"reason": "x"}, headers=PATIENT).status_code == 403
    refunded = client.post(f"/payments/{payment_id}/refund", json={"reason": "cancelled visit"}, headers=ADMIN)
    assert refunded.json()["status"] == "refunded"


def test_medical_records_access(client):
    created = client.post("/medical-records/", json={
        "patient_id": "patient-1", "type": "allergy", "title": "Pollen",
    }, headers=DOCTOR)
    assert created.status_code == 201
    record_id = created.json()["id"]

    assert client.get(f"/medical-records/{record_id}", headers=PATIENT).status_code == 200
    assert client.get(f"/medical-records/{record_id}", headers=OTHER).status_code == 403
    assert client.post("/medical-records/", json={
        "patient_id": "patient-1", "type": "allergy", "title": "Cats",
    }, headers=PATIENT).status_code == 403

    summary = client.get("/medical-records/patients/patient-1/summary", headers=PATIENT).json()
    assert [r["title"] for r in summary["allergies"]] == ["Pollen"]


def test_maintenance_mode(client):
    maintenance.enable(10, "Planned upgrade")
    resp = client.get("/services/")
    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == "3600"
    assert resp.json()["error"] == "Planned upgrade"

    assert client.get("/health").status_code == 200
    assert client.get("/admin/statistics", headers=ADMIN).status_code == 200

    maintenance.disable()
    assert client.get("/services/").status_code == 200


def test_validation_errors_are_wrapped(client):
    resp = client.post("/appointments/", json={"doctor_id": "x"}, headers=PATIENT)
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert {e["field"] for e in body["error"]} >= {"doctor_id", "service_id", "start_time"}


@pytest.mark.parametrize("content", ["[]", '{"end_time": 5}', '{"start_time": "soon"}'])
def test_malformed_maintenance_file_blocks_requests(client, content):
    with open(maintenance.settings.MAINTENANCE_FILE, "w") as fh:
        fh.write(content)
    assert client.get("/services/").status_code == 503
    assert client.get("/health").status_code == 200


def test_naive_timestamps_are_stored(client):
    stamp = datetime(2030, 1, 7, 8, 0)
    with Session(engine) as session:
        session.add(User(id="naive-1", name="Clock", role="patient", created_at=stamp))
        session.commit()
    with Session(engine) as session:
        stored = session.get(User, "naive-1").created_at
    assert stored == stamp
    assert stored.tzinfo is None


def test_review_flow(client, catalog):
    doctor_id, service_id = catalog
    with Session(engine) as session:
        visit = Appointment(patient_id="patient-1", doctor_id=doctor_id, service_id=service_id,
                            start_time=datetime.now() - timedelta(days=2), status="completed")
        session.add(visit)
        session.commit()
        visit_id = visit.id

    assert client.post("/reviews/", json={"appointment_id": visit_id, "rating": 5}, headers=OTHER).status_code == 404
    assert client.post("/reviews/", json={"appointment_id": visit_id, "rating": 9}, headers=PATIENT).status_code == 400
    created = client.post("/reviews/", json={
        "appointment_id": visit_id, "rating": 4, "comment": "Clear explanations", "anonymous": True,
    }, headers=PATIENT)
    assert created.status_code == 201
    review_id = created.json()["id"]
    assert client.post("/reviews/", json={"appointment_id": visit_id, "rating": 4}, headers=PATIENT).status_code == 409

    assert client.get(f"/reviews/doctor/{doctor_id}").json() == []
    assert client.get("/reviews/pending", headers=DOCTOR).status_code == 403
    assert [r["id"] for r in client.get("/reviews/pending", headers=ADMIN).json()] == [review_id]

    moderated = client.put(f"/reviews/{review_id}/moderate", json={"status": "approved"}, headers=ADMIN)
    assert moderated.json()["status"] == "approved"

    public = client.get(f"/reviews/doctor/{doctor_id}").json()
    assert [r["id"] for r in public] == [review_id]
    assert public[0]["patient_id"] is None
    summary = client.get(f"/reviews/doctor/{doctor_id}/summary").json()
    assert summary["average_rating"] == 4.0
    assert summary["rating_distribution"]["4"] == 1

    assert client.get("/reviews/mine", headers=PATIENT).json()[0]["patient_id"] == "patient-1"
    assert "review_moderated" in [n["type"] for n in client.get("/notifications/", headers=PATIENT).json()]
    assert "new_review" in [n["type"] for n in client.get("/notifications/", headers=DOCTOR).json()]

    feedback = client.post("/reviews/feedback", json={
        "type": "website", "subject": "Booking page", "content": "Works well",
    }, headers=OTHER)
    assert feedback.status_code == 201
    stats = client.get("/reviews/statistics", headers=ADMIN).json()
    assert stats["total_reviews"] == 1
    assert stats["feedback_by_type"] == {"website": 1}
    assert [f["subject"] for f in stats["recent_feedback"]] == ["Booking page"]
