from dataclasses import replace
from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from clinic.application.ports.reviews_repo import ReviewDto, FeedbackDto
from clinic.application.services.review_service import ReviewService, rating_summary

from conftest import NOW


class FakeReviewsRepo:
    def __init__(self, clock):
        self.clock = clock
        self.reviews = {}
        self.feedback = {}

    def get(self, review_id):
        return self.reviews.get(review_id)

    def get_by_appointment(self, appointment_id):
        return next((r for r in self.reviews.values() if r.appointment_id == appointment_id), None)

    def create(self, appointment_id, patient_id, doctor_id, rating, comment, anonymous):
        r = ReviewDto(len(self.reviews) + 1, appointment_id, patient_id, doctor_id, rating, comment, anonymous,
                      "pending", None, None, None, self.clock())
        self.reviews[r.id] = r
        return r

    def update(self, review_id, **fields):
        r = replace(self.reviews[review_id], **fields)
        self.reviews[review_id] = r
        return r

    def list_for_doctor(self, doctor_id, status=None, rating=None, start=None, end=None):
        found = [r for r in self.reviews.values() if r.doctor_id == doctor_id
                 and (status is None or r.status == status)
                 and (rating is None or r.rating == rating)
                 and (start is None or r.created_at >= start)
                 and (end is None or r.created_at <= end)]
        return sorted(found, key=lambda r: (r.created_at, r.id), reverse=True)

    def list_for_patient(self, patient_id):
        found = [r for r in self.reviews.values() if r.patient_id == patient_id]
        return sorted(found, key=lambda r: (r.created_at, r.id), reverse=True)

    def list_by_status(self, status):
        return sorted((r for r in self.reviews.values() if r.status == status), key=lambda r: (r.created_at, r.id))

    def ratings(self, status, doctor_id=None):
        return [r.rating for r in self.reviews.values()
                if r.status == status and (doctor_id is None or r.doctor_id == doctor_id)]

    def create_feedback(self, user_id, type, subject, content, metadata):
        f = FeedbackDto(len(self.feedback) + 1, user_id, type, subject, content, "pending", metadata, self.clock())
        self.feedback[f.id] = f
        return f

    def list_feedback(self, status=None, limit=None):
        found = sorted((f for f in self.feedback.values() if status is None or f.status == status),
                       key=lambda f: (f.created_at, f.id), reverse=True)
        return found[:limit] if limit else found

    def count_feedback_by_type(self):
        counts = {}
        for f in self.feedback.values():
            counts[f.type] = counts.get(f.type, 0) + 1
        return counts


@pytest.fixture
def reviews(clock):
    return FakeReviewsRepo(clock)


@pytest.fixture
def people(users):
    return {
        "patient": users.add("pat", "patient"),
        "other": users.add("other", "patient"),
        "doctor": users.add("doc", "doctor"),
        "admin": users.add("root", "admin"),
    }


@pytest.fixture
def doctor(doctors, people):
    return doctors.add(user_id="doc")


@pytest.fixture
def visit(appointments, doctor):
    return appointments.add(doctor.id, NOW - timedelta(days=2), status="completed", patient_id="pat")


@pytest.fixture
def svc(reviews, appointments, doctors, users, notifier, clock):
    return ReviewService(repo=reviews, appointments=appointments, doctors=doctors, users=users,
                         notifier=notifier, now=clock)


def test_submit_review_notifies_doctor_and_admins(svc, people, visit, notifications_repo):
    review = svc.submit_review(people["patient"], visit.id, 5, "  Very kind  ")
    assert review.status == "pending"
    assert review.comment == "Very kind"
    assert review.doctor_id == visit.doctor_id

    [to_doctor] = notifications_repo.for_user("doc")
    assert to_doctor.type == "new_review"
    assert "05/01/2030" in to_doctor.message
    [to_admin] = notifications_repo.for_user("root")
    assert to_admin.type == "review_pending_moderation"
    assert "Dr. Ada Lovelace" in to_admin.message


def test_only_the_patient_of_a_completed_visit_can_review(svc, people, appointments, visit, doctor):
    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["doctor"], visit.id, 4)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["other"], visit.id, 4)
    assert exc.value.status_code == 404

    scheduled = appointments.add(doctor.id, NOW - timedelta(days=1), status="scheduled", patient_id="pat")
    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["patient"], scheduled.id, 4)
    assert exc.value.status_code == 400

    upcoming = appointments.add(doctor.id, NOW + timedelta(days=1), status="completed", patient_id="pat")
    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["patient"], upcoming.id, 4)
    assert "future" in exc.value.detail


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_rating_range(svc, people, visit, rating):
    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["patient"], visit.id, rating)
    assert exc.value.status_code == 400


def test_one_review_per_appointment(svc, people, visit):
    svc.submit_review(people["patient"], visit.id, 4)
    with pytest.raises(HTTPException) as exc:
        svc.submit_review(people["patient"], visit.id, 2)
    assert exc.value.status_code == 409


def test_moderation(svc, people, visit, notifications_repo, clock):
    review = svc.submit_review(people["patient"], visit.id, 2, "Long wait")

    with pytest.raises(HTTPException) as exc:
        svc.moderate_review(people["doctor"], review.id, "approved")
    assert exc.value.status_code == 403
    with pytest.raises(HTTPException) as exc:
        svc.moderate_review(people["admin"], review.id, "maybe")
    assert exc.value.status_code == 400
    with pytest.raises(HTTPException) as exc:
        svc.moderate_review(people["admin"], 99, "approved")
    assert exc.value.status_code == 404

    clock.advance(hours=1)
    rejected = svc.moderate_review(people["admin"], review.id, "rejected")
    assert rejected.moderated_by == "root"
    assert rejected.moderated_at == NOW + timedelta(hours=1)
    [notice] = notifications_repo.for_user("pat")
    assert notice.type == "review_moderated"
    assert "Reason: Not specified" in notice.message

    approved = svc.moderate_review(people["admin"], review.id, "approved", "ok")
    assert approved.status == "approved"
    assert approved.moderation_note == "ok"


def test_doctor_reviews_are_approved_only_and_newest_first(svc, people, appointments, doctor, clock):
    ids = []
    for rating in (5, 3, 4):
        appt = appointments.add(doctor.id, NOW - timedelta(days=3), status="completed", patient_id="pat")
        ids.append(svc.submit_review(people["patient"], appt.id, rating, anonymous=rating == 3).id)
        clock.advance(days=1)
    svc.moderate_review(people["admin"], ids[0], "approved")
    svc.moderate_review(people["admin"], ids[1], "approved")

    listed = svc.doctor_reviews(doctor.id)
    assert [r.id for r in listed] == [ids[1], ids[0]]
    # anonymous reviews do not expose the author
    assert listed[0].patient_id is None
    assert listed[1].patient_id == "pat"

    assert [r.id for r in svc.doctor_reviews(doctor.id, rating=5)] == [ids[0]]
    assert [r.id for r in svc.doctor_reviews(doctor.id, start_date=date(2030, 1, 8))] == [ids[1]]
    assert [r.id for r in svc.doctor_reviews(doctor.id, end_date=date(2030, 1, 7))] == [ids[0]]

    with pytest.raises(HTTPException):
        svc.doctor_reviews(doctor.id, start_date=date(2030, 1, 9), end_date=date(2030, 1, 8))
    with pytest.raises(HTTPException) as exc:
        svc.doctor_reviews(404)
    assert exc.value.status_code == 404

    summary = svc.doctor_rating(doctor.id)
    assert summary["total_reviews"] == 2
    assert summary["average_rating"] == 4.0


def test_patient_and_pending_lists(svc, people, appointments, doctor, clock):
    first = appointments.add(doctor.id, NOW - timedelta(days=3), status="completed", patient_id="pat")
    second = appointments.add(doctor.id, NOW - timedelta(days=2), status="completed", patient_id="pat")
    a = svc.submit_review(people["patient"], first.id, 4)
    clock.advance(minutes=5)
    b = svc.submit_review(people["patient"], second.id, 5)

    assert [r.id for r in svc.patient_reviews(people["patient"])] == [b.id, a.id]
    assert svc.patient_reviews(people["other"]) == []
    assert [r.id for r in svc.pending_reviews(people["admin"])] == [a.id, b.id]
    with pytest.raises(HTTPException) as exc:
        svc.pending_reviews(people["patient"])
    assert exc.value.status_code == 403


def test_feedback(svc, people, notifications_repo):
    feedback = svc.submit_feedback(people["other"], "website", " Dark mode ", "Please add it", {"page": "home"})
    assert feedback.subject == "Dark mode"
    assert feedback.metadata == {"page": "home"}
    assert [n.type for n in notifications_repo.for_user("root")] == ["new_feedback"]

    with pytest.raises(HTTPException):
        svc.submit_feedback(people["other"], "complaint", "x", "y")
    with pytest.raises(HTTPException):
        svc.submit_feedback(people["other"], "general", "  ", "y")


def test_statistics(svc, people, appointments, doctor):
    for rating in (5, 4, 4, 1):
        appt = appointments.add(doctor.id, NOW - timedelta(days=1), status="completed", patient_id="pat")
        review = svc.submit_review(people["patient"], appt.id, rating)
        if rating != 1:
            svc.moderate_review(people["admin"], review.id, "approved")
    svc.submit_feedback(people["patient"], "service", "Parking", "Hard to find")
    svc.submit_feedback(people["other"], "service", "Desk", "Friendly")

    stats = svc.statistics(people["admin"])
    assert stats["total_reviews"] == 3
    assert stats["average_rating"] == 4.3
    assert stats["rating_distribution"] == {1: 0, 2: 0, 3: 0, 4: 2, 5: 1}
    assert stats["pending_reviews"] == 1
    assert stats["feedback_by_type"] == {"service": 2}
    assert len(stats["recent_feedback"]) == 2

    with pytest.raises(HTTPException):
        svc.statistics(people["doctor"])


def test_rating_summary_without_reviews():
    assert rating_summary([]) == {
        "total_reviews": 0,
        "average_rating": 0.0,
        "rating_distribution": {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
    }
