import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional
from datetime import date, datetime, time
from fastapi import HTTPException

from ..ports.reviews_repo import (
    ReviewsRepository,
    ReviewDto,
    FeedbackDto,
    RATING_MIN,
    RATING_MAX,
    FEEDBACK_TYPES,
)
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.doctors_repo import DoctorsRepository, DoctorDto
from ..ports.user_repo import CurrentUser, UserRepository
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

MODERATION_STATUSES = ("approved", "rejected")
RECENT_FEEDBACK_LIMIT = 10


def rating_summary(ratings: List[int]) -> Dict[str, Any]:
    counts = Counter(ratings)
    return {
        "total_reviews": len(ratings),
        "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else 0.0,
        "rating_distribution": {value: counts.get(value, 0) for value in range(RATING_MIN, RATING_MAX + 1)},
    }


@dataclass
class ReviewService:
    """Patient reviews of completed consultations and general feedback.

    Reviews are only published once an admin approves them.
    """

    repo: ReviewsRepository
    appointments: AppointmentsRepository
    doctors: DoctorsRepository
    users: UserRepository
    notifier: NotificationService
    now: Callable[[], datetime] = datetime.now

    def _doctor(self, doctor_id: int) -> DoctorDto:
        doctor = self.doctors.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def _require_admin(self, user: CurrentUser) -> None:
        if not user.is_admin:
            raise HTTPException(status_code=403, detail="Admin access required")

    @staticmethod
    def _public(review: ReviewDto) -> ReviewDto:
        return replace(review, patient_id=None) if review.anonymous else review

    def submit_review(self, user: CurrentUser, appointment_id: int, rating: int,
                      comment: Optional[str] = None, anonymous: bool = False) -> ReviewDto:
        if user.role != "patient":
            raise HTTPException(status_code=403, detail="Only patients can leave reviews")
        if not RATING_MIN <= rating <= RATING_MAX:
            raise HTTPException(status_code=400, detail=f"Rating must be between {RATING_MIN} and {RATING_MAX}")

        appt = self.appointments.get_by_id(appointment_id)
        if not appt or appt.patient_id != user.id:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appt.start_time > self.now():
            raise HTTPException(status_code=400, detail="You cannot review future appointments")
        if appt.status != "completed":
            raise HTTPException(status_code=400, detail="Only completed appointments can be reviewed")
        if self.repo.get_by_appointment(appointment_id):
            raise HTTPException(status_code=409, detail="You have already reviewed this appointment")

        comment = comment.strip() if comment else None
        review = self.repo.create(appt.id, user.id, appt.doctor_id, rating, comment or None, anonymous)
        logger.info(f"Review {review.id} submitted for appointment {appt.id}")

        doctor = self.doctors.get(appt.doctor_id)
        if doctor:
            self.notifier.send_review_notifications(review, appt, doctor, self.users.list_ids_by_role("admin"))
        return review

    def moderate_review(self, user: CurrentUser, review_id: int, status: str,
                        note: Optional[str] = None) -> ReviewDto:
        self._require_admin(user)
        if status not in MODERATION_STATUSES:
            raise HTTPException(status_code=400, detail=f"Status must be one of: {', '.join(MODERATION_STATUSES)}")
        if not self.repo.get(review_id):
            raise HTTPException(status_code=404, detail="Review not found")

        review = self.repo.update(
            review_id,
            status=status,
            moderation_note=note.strip() if note and note.strip() else None,
            moderated_by=user.id,
            moderated_at=self.now(),
        )
        logger.info(f"Review {review_id} {status} by {user.id}")

        doctor = self.doctors.get(review.doctor_id)
        if doctor:
            self.notifier.send_review_moderation(review, doctor)
        return review

    def doctor_reviews(self, doctor_id: int, rating: Optional[int] = None,
                       start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[ReviewDto]:
        self._doctor(doctor_id)
        if rating is not None and not RATING_MIN <= rating <= RATING_MAX:
            raise HTTPException(status_code=400, detail=f"Rating must be between {RATING_MIN} and {RATING_MAX}")
        if start_date and end_date and start_date > end_date:
            raise HTTPException(status_code=400, detail="Start date must be before end date")
        reviews = self.repo.list_for_doctor(
            doctor_id,
            status="approved",
            rating=rating,
            start=datetime.combine(start_date, time.min) if start_date else None,
            end=datetime.combine(end_date, time.max) if end_date else None,
        )
        return [self._public(r) for r in reviews]

    def doctor_rating(self, doctor_id: int) -> Dict[str, Any]:
        self._doctor(doctor_id)
        return rating_summary(self.repo.ratings("approved", doctor_id=doctor_id))

    def patient_reviews(self, user: CurrentUser) -> List[ReviewDto]:
        return self.repo.list_for_patient(user.id)

    def pending_reviews(self, user: CurrentUser) -> List[ReviewDto]:
        self._require_admin(user)
        return self.repo.list_by_status("pending")

    def submit_feedback(self, user: CurrentUser, type: str, subject: str, content: str,
                        metadata: Optional[Dict[str, Any]] = None) -> FeedbackDto:
        if type not in FEEDBACK_TYPES:
            raise HTTPException(status_code=400, detail=f"Feedback type must be one of: {', '.join(FEEDBACK_TYPES)}")
        subject, content = (subject or "").strip(), (content or "").strip()
        if not subject or not content:
            raise HTTPException(status_code=400, detail="Subject and content are required")

        feedback = self.repo.create_feedback(user.id, type, subject, content, metadata)
        logger.info(f"Feedback {feedback.id} ({type}) received from {user.id}")
        self.notifier.send_feedback_notification(feedback, self.users.list_ids_by_role("admin"))
        return feedback

    def statistics(self, user: CurrentUser) -> Dict[str, Any]:
        self._require_admin(user)
        stats = rating_summary(self.repo.ratings("approved"))
        stats["pending_reviews"] = len(self.repo.list_by_status("pending"))
        stats["feedback_by_type"] = self.repo.count_feedback_by_type()
        stats["recent_feedback"] = self.repo.list_feedback(status="pending", limit=RECENT_FEEDBACK_LIMIT)
        return stats
