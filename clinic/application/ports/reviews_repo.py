from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime

RATING_MIN = 1
RATING_MAX = 5
REVIEW_STATUSES = ("pending", "approved", "rejected")
FEEDBACK_TYPES = ("general", "service", "doctor", "appointment", "website")


@dataclass
class ReviewDto:
    id: int
    appointment_id: int
    patient_id: Optional[str]
    doctor_id: int
    rating: int
    comment: Optional[str]
    anonymous: bool
    status: str
    moderation_note: Optional[str]
    moderated_by: Optional[str]
    moderated_at: Optional[datetime]
    created_at: datetime


@dataclass
class FeedbackDto:
    id: int
    user_id: str
    type: str
    subject: str
    content: str
    status: str
    metadata: Optional[Dict[str, Any]]
    created_at: datetime


class ReviewsRepository:
    def get(self, review_id: int) -> Optional[ReviewDto]:
        ...

    def get_by_appointment(self, appointment_id: int) -> Optional[ReviewDto]:
        ...

    def create(self, appointment_id: int, patient_id: str, doctor_id: int, rating: int,
               comment: Optional[str], anonymous: bool) -> ReviewDto:
        ...

    def update(self, review_id: int, **fields) -> ReviewDto:
        ...

    def list_for_doctor(self, doctor_id: int, status: Optional[str] = None, rating: Optional[int] = None,
                        start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[ReviewDto]:
        """Newest first."""
        ...

    def list_for_patient(self, patient_id: str) -> List[ReviewDto]:
        """Newest first."""
        ...

    def list_by_status(self, status: str) -> List[ReviewDto]:
        """Oldest first, so moderation works through the queue in order."""
        ...

    def ratings(self, status: str, doctor_id: Optional[int] = None) -> List[int]:
        ...

    def create_feedback(self, user_id: str, type: str, subject: str, content: str,
                        metadata: Optional[Dict[str, Any]]) -> FeedbackDto:
        ...

    def list_feedback(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[FeedbackDto]:
        """Newest first."""
        ...

    def count_feedback_by_type(self) -> Dict[str, int]:
        ...
