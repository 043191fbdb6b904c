from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from clinic.application.ports.records_repo import MedicalRecordDto, MedicalNoteDto, PrescriptionDto
from clinic.application.services.medical_record_service import MedicalRecordService

from conftest import NOW


class FakeRecordsRepo:
    def __init__(self):
        self.records = []
        self.notes = []
        self.prescriptions = []

    def create_record(self, patient_id, doctor_id, type, title, description, date, metadata):
        r = MedicalRecordDto(len(self.records) + 1, patient_id, doctor_id, type, title, description, date, metadata)
        self.records.append(r)
        return r

    def get_record(self, record_id):
        return next((r for r in self.records if r.id == record_id), None)

    def search_records(self, patient_id, type=None, start=None, end=None, doctor_id=None, limit=None):
        found = [r for r in self.records if r.patient_id == patient_id
                 and (type is None or r.type == type)
                 and (start is None or r.date >= start)
                 and (end is None or r.date <= end)
                 and (doctor_id is None or r.doctor_id == doctor_id)]
        found.sort(key=lambda r: r.date, reverse=True)
        return found[:limit] if limit else found

    def add_note(self, record_id, doctor_id, content, metadata):
        n = MedicalNoteDto(len(self.notes) + 1, record_id, doctor_id, content, metadata, NOW)
        self.notes.append(n)
        return n

    def list_notes(self, record_id):
        return [n for n in self.notes if n.record_id == record_id]

    def create_prescription(self, patient_id, doctor_id, medications, instructions, start_date, end_date, metadata):
        p = PrescriptionDto(len(self.prescriptions) + 1, patient_id, doctor_id, medications, instructions,
                            start_date, end_date, metadata)
        self.prescriptions.append(p)
        return p

    def list_prescriptions(self, patient_id, active_on=None):
        return [p for p in self.prescriptions if p.patient_id == patient_id
                and (active_on is None or p.end_date >= active_on)]


@pytest.fixture
def records():
    return FakeRecordsRepo()


@pytest.fixture
def people(users):
    return {
        "patient": users.add("pat", "patient"),
        "other": users.add("other", "patient"),
        "doctor": users.add("doc", "doctor"),
        "admin": users.add("root", "admin"),
    }


@pytest.fixture
def svc(records, users, clock):
    return MedicalRecordService(repo=records, users=users, now=clock)


def test_doctor_creates_record(svc, people):
    record = svc.create_medical_record(people["doctor"], "pat", "consultation", "  Flu  ", "fever",
                                       metadata={"temperature": 38.5})
    assert record.title == "Flu"
    assert record.doctor_id == "doc"
    assert record.date == NOW
    assert record.metadata == {"temperature": 38.5}


def test_patients_cannot_write(svc, people):
    with pytest.raises(HTTPException) as exc:
        svc.create_medical_record(people["patient"], "pat", "consultation", "Self diagnosis")
    assert exc.value.status_code == 403


@pytest.mark.parametrize("patient_id,type,title,status", [
    ("pat", "horoscope", "x", 400),
    ("pat", "allergy", "  ", 400),
    ("doc", "allergy", "Peanuts", 404),
    ("missing", "allergy", "Peanuts", 404),
])
def test_create_record_validation(svc, people, patient_id, type, title, status):
    with pytest.raises(HTTPException) as exc:
        svc.create_medical_record(people["admin"], patient_id, type, title)
    assert exc.value.status_code == status


def test_record_access(svc, people):
    record = svc.create_medical_record(people["doctor"], "pat", "lab_result", "Blood test")
    assert svc.get_record(people["patient"], record.id).id == record.id
    assert svc.get_record(people["admin"], record.id).id == record.id

    with pytest.raises(HTTPException) as exc:
        svc.get_record(people["other"], record.id)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        svc.get_record(people["doctor"], 404)
    assert exc.value.status_code == 404


def test_notes(svc, people):
    record = svc.create_medical_record(people["doctor"], "pat", "consultation", "Check-up")
    svc.add_medical_note(people["doctor"], record.id, "Follow up in two weeks")
    with pytest.raises(HTTPException):
        svc.add_medical_note(people["doctor"], record.id, "   ")
    with pytest.raises(HTTPException) as exc:
        svc.add_medical_note(people["patient"], record.id, "hello")
    assert exc.value.status_code == 403

    notes = svc.list_notes(people["patient"], record.id)
    assert [n.content for n in notes] == ["Follow up in two weeks"]


def test_prescription_validation(svc, people):
    start = NOW
    with pytest.raises(HTTPException):
        svc.create_prescription(people["doctor"], "pat", ["", "  "], "daily", start, start + timedelta(days=5))
    with pytest.raises(HTTPException):
        svc.create_prescription(people["doctor"], "pat", ["Ibuprofen"], "daily", start, start - timedelta(days=1))

    p = svc.create_prescription(people["doctor"], "pat", [" Ibuprofen "], "daily", start, start + timedelta(days=5))
    assert p.medications == ["Ibuprofen"]


def test_search(svc, people):
    svc.create_medical_record(people["doctor"], "pat", "allergy", "Peanuts", date=NOW - timedelta(days=40))
    svc.create_medical_record(people["doctor"], "pat", "consultation", "Cold", date=NOW - timedelta(days=2))
    svc.create_medical_record(people["admin"], "pat", "consultation", "Cough", date=NOW - timedelta(days=1))

    found = svc.search_medical_records(people["patient"], "pat", type="consultation")
    assert [r.title for r in found] == ["Cough", "Cold"]

    recent = svc.search_medical_records(people["doctor"], "pat", start_date=NOW - timedelta(days=7))
    assert len(recent) == 2

    assert [r.title for r in svc.search_medical_records(people["doctor"], "pat", doctor_id="root")] == ["Cough"]

    with pytest.raises(HTTPException):
        svc.search_medical_records(people["doctor"], "pat", start_date=NOW, end_date=NOW - timedelta(days=1))
    with pytest.raises(HTTPException) as exc:
        svc.search_medical_records(people["other"], "pat")
    assert exc.value.status_code == 403


def test_summary_and_history(svc, people):
    doctor = people["doctor"]
    svc.create_medical_record(doctor, "pat", "allergy", "Penicillin")
    svc.create_medical_record(doctor, "pat", "chronic_condition", "Asthma")
    svc.create_medical_record(doctor, "pat", "vital_signs", "Old vitals", date=NOW - timedelta(days=10))
    svc.create_medical_record(doctor, "pat", "vital_signs", "New vitals", date=NOW - timedelta(days=1))
    for day in range(7):
        svc.create_medical_record(doctor, "pat", "consultation", f"Visit {day}", date=NOW - timedelta(days=day + 1))
    svc.create_prescription(doctor, "pat", ["Salbutamol"], "as needed", NOW - timedelta(days=3), NOW + timedelta(days=3))
    svc.create_prescription(doctor, "pat", ["Amoxicillin"], "3x daily", NOW - timedelta(days=30), NOW - timedelta(days=20))

    summary = svc.generate_medical_summary(people["patient"], "pat")
    assert [r.title for r in summary["allergies"]] == ["Penicillin"]
    assert [r.title for r in summary["chronic_conditions"]] == ["Asthma"]
    assert summary["latest_vital_signs"].title == "New vitals"
    assert len(summary["recent_consultations"]) == 5
    assert summary["recent_consultations"][0].title == "Visit 0"
    assert [p.medications for p in summary["current_medications"]] == [["Salbutamol"]]

    history = svc.get_medical_history(doctor, "pat")
    assert len(history["records"]) == 11
    assert len(history["prescriptions"]) == 2


def test_summary_without_records(svc, people):
    summary = svc.generate_medical_summary(people["admin"], "other")
    assert summary["latest_vital_signs"] is None
    assert summary["allergies"] == []
