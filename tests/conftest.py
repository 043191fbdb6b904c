import os
import tempfile
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

_tmp = tempfile.mkdtemp(prefix="clinic-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("MAINTENANCE_FILE", os.path.join(_tmp, "maintenance.lock"))
os.environ.setdefault("SCHEDULER_LOCK_FILE", os.path.join(_tmp, "scheduler.lock"))

from clinic.application.ports.appointments_repo import AppointmentDto, ACTIVE_STATUSES  # noqa: E402
from clinic.application.ports.doctors_repo import DoctorDto, WorkingDayDto  # noqa: E402
from clinic.application.ports.time_slots_repo import UnavailabilityDto  # noqa: E402
from clinic.application.ports.services_repo import MedicalServiceDto  # noqa: E402
from clinic.application.ports.notifications_repo import NotificationDto  # noqa: E402
from clinic.application.ports.user_repo import CurrentUser, UserDto  # noqa: E402
from clinic.application.services.calendar_service import CalendarService  # noqa: E402
from clinic.application.services.notification_service import NotificationService  # noqa: E402

# A Monday morning; the first bookable slot is Tuesday 09:00
NOW = datetime(2030, 1, 7, 8, 0)
TUESDAY = NOW.date() + timedelta(days=1)


class Clock:
    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


DEFAULT_DAY = WorkingDayDto(start="09:00", end="18:00", lunch_start="12:00", lunch_end="13:00")


class FakeDoctorsRepo:
    def __init__(self):
        self.doctors = {}
        self.hours = {}
        self._id = 1

    def add(self, first_name="Ada", last_name="Lovelace", user_id=None, is_available=True, with_hours=True):
        d = DoctorDto(self._id, user_id, first_name, last_name, "cardiology", None, is_available, NOW)
        self.doctors[d.id] = d
        if with_hours:
            self.hours[d.id] = {day: DEFAULT_DAY for day in ("monday", "tuesday", "wednesday", "thursday", "friday")}
        self._id += 1
        return d

    def get(self, doctor_id):
        return self.doctors.get(doctor_id)

    def get_by_user(self, user_id):
        return next((d for d in self.doctors.values() if d.user_id == user_id), None)

    def list(self, speciality=None, available=None):
        return list(self.doctors.values())

    def search(self, query):
        return [d for d in self.doctors.values() if query.lower() in d.full_name.lower()]

    def create(self, user_id, first_name, last_name, speciality, email):
        d = self.add(first_name, last_name, user_id=user_id, with_hours=False)
        d.speciality = speciality
        d.email = email
        return d

    def update(self, doctor_id, **fields):
        d = replace(self.doctors[doctor_id], **fields)
        self.doctors[doctor_id] = d
        return d

    def count(self):
        return len(self.doctors)

    def get_working_hours(self, doctor_id):
        return dict(self.hours.get(doctor_id, {}))

    def replace_working_hours(self, doctor_id, hours):
        self.hours[doctor_id] = dict(hours)


class FakeAppointmentsRepo:
    def __init__(self):
        self.appts = {}
        self._id = 1

    def add(self, doctor_id, start_time, duration=30, status="scheduled", patient_id="p1", service_id=1):
        a = AppointmentDto(self._id, patient_id, doctor_id, service_id, start_time, duration, status,
                           None, None, None, None, NOW)
        self.appts[a.id] = a
        self._id += 1
        return a

    def get_by_id(self, appointment_id):
        return self.appts.get(appointment_id)

    def find_active_overlapping(self, doctor_id, start, end):
        return sorted(
            (a for a in self.appts.values()
             if a.doctor_id == doctor_id and a.status in ACTIVE_STATUSES
             and a.start_time < end and a.end_time > start),
            key=lambda a: a.start_time,
        )

    def create(self, patient_id, doctor_id, service_id, start_time, duration, reason):
        a = self.add(doctor_id, start_time, duration, "pending", patient_id, service_id)
        a.reason = reason
        return a

    def update(self, appointment_id, **fields):
        a = replace(self.appts[appointment_id], **fields)
        self.appts[appointment_id] = a
        return a

    def list_for_patient(self, patient_id):
        return [a for a in self.appts.values() if a.patient_id == patient_id]

    def list_for_doctor(self, doctor_id, start=None, end=None):
        return [a for a in self.appts.values() if a.doctor_id == doctor_id
                and (start is None or a.start_time >= start) and (end is None or a.start_time < end)]

    def list_in_range(self, start, end):
        return [a for a in self.appts.values() if start <= a.start_time < end]

    def count_by_status(self):
        counts = {}
        for a in self.appts.values():
            counts[a.status] = counts.get(a.status, 0) + 1
        return counts

    def count_completed_for_patient(self, patient_id):
        return sum(1 for a in self.appts.values() if a.patient_id == patient_id and a.status == "completed")

    def count_for_service(self, service_id):
        return sum(1 for a in self.appts.values() if a.service_id == service_id)

    def find_needing_reminders(self, start, end):
        return [a for a in self.appts.values()
                if a.status in ACTIVE_STATUSES and a.reminder_sent_at is None and start < a.start_time <= end]


class FakeUnavailabilityRepo:
    def __init__(self):
        self.items = {}
        self._id = 1

    def find_overlapping(self, doctor_id, start, end):
        return [u for u in self.items.values()
                if u.doctor_id == doctor_id and u.start_time < end and u.end_time > start]

    def get(self, slot_id):
        return self.items.get(slot_id)

    def create(self, doctor_id, start, end, reason):
        u = UnavailabilityDto(self._id, doctor_id, start, end, reason)
        self.items[u.id] = u
        self._id += 1
        return u

    def delete(self, slot_id):
        self.items.pop(slot_id, None)


class FakeServicesRepo:
    def __init__(self):
        self.services = {}
        self._id = 1

    def add(self, name="Consultation", duration=30, price=50.0, doctor_ids=None, is_active=True, category="general"):
        s = MedicalServiceDto(self._id, name, name.lower(), "", duration, price, category, is_active,
                              list(doctor_ids or []))
        self.services[s.id] = s
        self._id += 1
        return s

    def get(self, service_id):
        return self.services.get(service_id)

    def get_by_name(self, name):
        return next((s for s in self.services.values() if s.name.lower() == name.lower()), None)

    def list(self, active=None, category=None, doctor_id=None):
        return [s for s in self.services.values()
                if (active is None or s.is_active == active)
                and (category is None or s.category == category)
                and (doctor_id is None or doctor_id in s.doctor_ids)]

    def search(self, query):
        return [s for s in self.services.values() if query.lower() in s.name.lower()]

    def create(self, name, slug, description, duration, price, category):
        s = self.add(name, duration, price, category=category)
        s.slug = slug
        s.description = description
        return s

    def update(self, service_id, **fields):
        s = replace(self.services[service_id], **fields)
        self.services[service_id] = s
        return s

    def delete(self, service_id):
        self.services.pop(service_id, None)

    def add_doctor(self, service_id, doctor_id):
        self.services[service_id].doctor_ids.append(doctor_id)

    def remove_doctor(self, service_id, doctor_id):
        self.services[service_id].doctor_ids.remove(doctor_id)

    def count_by_category(self):
        counts = {}
        for s in self.services.values():
            key = s.category or "uncategorized"
            counts[key] = counts.get(key, 0) + 1
        return counts


class FakeNotificationsRepo:
    def __init__(self):
        self.items = {}
        self._id = 1

    def create(self, user_id, type, title, message, data=None):
        n = NotificationDto(self._id, user_id, type, title, message, False, data, NOW)
        self.items[n.id] = n
        self._id += 1
        return n

    def list_for_user(self, user_id, type=None, read=None, limit=50, offset=0):
        found = [n for n in self.items.values() if n.user_id == user_id
                 and (type is None or n.type == type) and (read is None or n.read == read)]
        return list(reversed(found))[offset:offset + limit]

    def get_for_user(self, notification_id, user_id):
        n = self.items.get(notification_id)
        return n if n and n.user_id == user_id else None

    def mark_read(self, notification_id):
        self.items[notification_id].read = True

    def mark_all_read(self, user_id):
        unread = [n for n in self.items.values() if n.user_id == user_id and not n.read]
        for n in unread:
            n.read = True
        return len(unread)

    def delete(self, notification_id):
        self.items.pop(notification_id, None)

    def unread_count(self, user_id):
        return sum(1 for n in self.items.values() if n.user_id == user_id and not n.read)

    def for_user(self, user_id):
        return [n for n in self.items.values() if n.user_id == user_id]


class FakeUserRepo:
    def __init__(self):
        self.users = {}

    def add(self, user_id, role="patient"):
        self.users[user_id] = UserDto(user_id, user_id, None, None, role, True, NOW)
        return CurrentUser(id=user_id, role=role)

    def get_by_id(self, user_id):
        return self.users.get(user_id)

    def count_by_role(self, role):
        return sum(1 for u in self.users.values() if u.role == role)

    def list_ids_by_role(self, role):
        return [u.id for u in self.users.values() if u.role == role and u.is_active]


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def doctors():
    return FakeDoctorsRepo()


@pytest.fixture
def appointments():
    return FakeAppointmentsRepo()


@pytest.fixture
def unavailabilities():
    return FakeUnavailabilityRepo()


@pytest.fixture
def services():
    return FakeServicesRepo()


@pytest.fixture
def notifications_repo():
    return FakeNotificationsRepo()


@pytest.fixture
def users():
    return FakeUserRepo()


@pytest.fixture
def notifier(notifications_repo):
    return NotificationService(notifications_repo)


@pytest.fixture
def calendar(doctors, appointments, unavailabilities, notifier, clock):
    return CalendarService(
        doctors=doctors,
        appointments=appointments,
        unavailabilities=unavailabilities,
        notifier=notifier,
        slot_duration=30,
        min_advance_hours=24,
        max_advance_days=60,
        working_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
        now=clock,
    )
