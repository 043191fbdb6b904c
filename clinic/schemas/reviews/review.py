# clinic/schemas/reviews/review.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class ReviewCreate(BaseModel):
    appointment_id: int
    rating: int
    comment: Optional[str] = Field(default=None, max_length=2000)
    anonymous: bool = False


class ReviewModeration(BaseModel):
    status: str
    note: Optional[str] = Field(default=None, max_length=500)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: int
    patient_id: Optional[str] = None
    doctor_id: int
    rating: int
    comment: Optional[str] = None
    anonymous: bool
    status: str
    moderation_note: Optional[str] = None
    moderated_at: Optional[datetime] = None
    created_at: datetime


class FeedbackCreate(BaseModel):
    type: str = "general"
    subject: str = Field(max_length=200)
    content: str = Field(max_length=5000)
    metadata: Optional[Dict[str, Any]] = None


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    subject: str
    content: str
    status: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class RatingSummaryResponse(BaseModel):
    total_reviews: int
    average_rating: float
    rating_distribution: Dict[int, int]


class ReviewStatisticsResponse(RatingSummaryResponse):
    model_config = ConfigDict(from_attributes=True)

    pending_reviews: int
    feedback_by_type: Dict[str, int]
    recent_feedback: List[FeedbackResponse]
