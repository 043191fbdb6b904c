import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select, func

from .....db.models import Review, Feedback
from .....application.ports.reviews_repo import ReviewsRepository, ReviewDto, FeedbackDto


class SqlReviewsRepository(ReviewsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: Review) -> ReviewDto:
        return ReviewDto(
            id=r.id,
            appointment_id=r.appointment_id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            rating=r.rating,
            comment=r.comment,
            anonymous=bool(r.anonymous),
            status=r.status,
            moderation_note=r.moderation_note,
            moderated_by=r.moderated_by,
            moderated_at=r.moderated_at,
            created_at=r.created_at,
        )

    def _feedback_dto(self, f: Feedback) -> FeedbackDto:
        return FeedbackDto(
            id=f.id,
            user_id=f.user_id,
            type=f.type,
            subject=f.subject,
            content=f.content,
            status=f.status,
            metadata=json.loads(f.data) if f.data else None,
            created_at=f.created_at,
        )

    def get(self, review_id: int) -> Optional[ReviewDto]:
        r = self.session.get(Review, review_id)
        return self._to_dto(r) if r else None

    def get_by_appointment(self, appointment_id: int) -> Optional[ReviewDto]:
        r = self.session.exec(select(Review).where(Review.appointment_id == appointment_id)).first()
        return self._to_dto(r) if r else None

    def create(self, appointment_id: int, patient_id: str, doctor_id: int, rating: int,
               comment: Optional[str], anonymous: bool) -> ReviewDto:
        r = Review(
            appointment_id=appointment_id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            rating=rating,
            comment=comment,
            anonymous=anonymous,
        )
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def update(self, review_id: int, **fields) -> ReviewDto:
        r = self.session.get(Review, review_id)
        for key, value in fields.items():
            setattr(r, key, value)
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def list_for_doctor(self, doctor_id: int, status: Optional[str] = None, rating: Optional[int] = None,
                        start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[ReviewDto]:
        query = select(Review).where(Review.doctor_id == doctor_id)
        if status:
            query = query.where(Review.status == status)
        if rating is not None:
            query = query.where(Review.rating == rating)
        if start:
            query = query.where(Review.created_at >= start)
        if end:
            query = query.where(Review.created_at <= end)
        rows = self.session.exec(query.order_by(Review.created_at.desc(), Review.id.desc())).all()
        return [self._to_dto(r) for r in rows]

    def list_for_patient(self, patient_id: str) -> List[ReviewDto]:
        rows = self.session.exec(
            select(Review).where(Review.patient_id == patient_id).order_by(Review.created_at.desc(), Review.id.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def list_by_status(self, status: str) -> List[ReviewDto]:
        rows = self.session.exec(
            select(Review).where(Review.status == status).order_by(Review.created_at, Review.id)
        ).all()
        return [self._to_dto(r) for r in rows]

    def ratings(self, status: str, doctor_id: Optional[int] = None) -> List[int]:
        query = select(Review.rating).where(Review.status == status)
        if doctor_id is not None:
            query = query.where(Review.doctor_id == doctor_id)
        return list(self.session.exec(query).all())

    def create_feedback(self, user_id: str, type: str, subject: str, content: str,
                        metadata: Optional[Dict[str, Any]]) -> FeedbackDto:
        f = Feedback(
            user_id=user_id,
            type=type,
            subject=subject,
            content=content,
            data=json.dumps(metadata) if metadata is not None else None,
        )
        self.session.add(f)
        self.session.commit()
        self.session.refresh(f)
        return self._feedback_dto(f)

    def list_feedback(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[FeedbackDto]:
        query = select(Feedback)
        if status:
            query = query.where(Feedback.status == status)
        query = query.order_by(Feedback.created_at.desc(), Feedback.id.desc())
        if limit:
            query = query.limit(limit)
        return [self._feedback_dto(f) for f in self.session.exec(query).all()]

    def count_feedback_by_type(self) -> Dict[str, int]:
        rows = self.session.exec(select(Feedback.type, func.count()).group_by(Feedback.type)).all()
        return {type: count for type, count in rows}
