import pytest
from fastapi import HTTPException

from clinic.application.services.medical_service_manager import MedicalServiceManager, slugify

from conftest import NOW


@pytest.fixture
def manager(services, doctors, appointments):
    return MedicalServiceManager(repo=services, doctors=doctors, appointments=appointments)


def test_slugify():
    assert slugify("  Blood Test (Full) ") == "blood-test-full"


def test_create_assigns_doctors(manager, doctors):
    doctor = doctors.add()
    service = manager.create("General Consultation", "Routine visit", 30, 45.0, "general", [doctor.id])
    assert service.slug == "general-consultation"
    assert service.doctor_ids == [doctor.id]
    assert [s.id for s in manager.list_by_doctor(doctor.id)] == [service.id]


def test_create_validation(manager):
    manager.create("X-ray", duration=20, price=80.0)
    with pytest.raises(HTTPException):
        manager.create("x-ray")
    with pytest.raises(HTTPException):
        manager.create("  ")
    with pytest.raises(HTTPException):
        manager.create("Scan", duration=0)
    with pytest.raises(HTTPException):
        manager.create("Scan", price=-1)


def test_create_with_unknown_doctor(manager):
    with pytest.raises(HTTPException) as exc:
        manager.create("Scan", doctor_ids=[42])
    assert exc.value.status_code == 404


def test_update_renames_and_reslugs(manager):
    service = manager.create("Checkup")
    manager.create("Vaccination")
    updated = manager.update(service.id, name="Annual Checkup", price=None)
    assert updated.slug == "annual-checkup"
    with pytest.raises(HTTPException):
        manager.update(service.id, name="Vaccination")


def test_delete_blocked_by_appointments(manager, appointments):
    used = manager.create("Dermatology")
    unused = manager.create("Physio")
    appointments.add(1, NOW, service_id=used.id)

    with pytest.raises(HTTPException) as exc:
        manager.delete(used.id)
    assert exc.value.status_code == 400

    manager.delete(unused.id)
    with pytest.raises(HTTPException) as exc:
        manager.get(unused.id)
    assert exc.value.status_code == 404


def test_toggle_and_listing(manager):
    a = manager.create("Cardiology", category="specialist")
    b = manager.create("Neurology", category="specialist")
    manager.toggle_active(b.id)
    assert [s.id for s in manager.list_active()] == [a.id]
    assert [s.id for s in manager.list_by_category("specialist")] == [a.id]
    assert [s.name for s in manager.search(" neuro ")] == ["Neurology"]


def test_remove_doctor(manager, doctors):
    doctor = doctors.add()
    service = manager.create("Consultation", doctor_ids=[doctor.id])
    assert manager.remove_doctor(service.id, doctor.id).doctor_ids == []
    with pytest.raises(HTTPException):
        manager.remove_doctor(service.id, doctor.id)


def test_statistics(manager):
    manager.create("A", price=10.0, category="lab")
    manager.create("B", price=30.0, category="lab")
    c = manager.create("C", price=50.0)
    manager.toggle_active(c.id)
    stats = manager.statistics()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["inactive"] == 1
    assert stats["average_price"] == 30.0
    assert stats["by_category"] == {"lab": 2, "uncategorized": 1}
