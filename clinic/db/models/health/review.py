# clinic/db/models/health/review.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Review(SQLModel, table=True):
    __tablename__ = "reviews"
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", unique=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    rating: int  # 1..5
    comment: Optional[str] = None
    anonymous: bool = Field(default=False)
    status: str = Field(default="pending", index=True)  # pending | approved | rejected
    moderation_note: Optional[str] = None
    moderated_by: Optional[str] = Field(default=None, foreign_key="users.id")
    moderated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)


class Feedback(SQLModel, table=True):
    __tablename__ = "feedback"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    type: str = Field(index=True)  # general | service | doctor | appointment | website
    subject: str = Field(max_length=200)
    content: str
    status: str = Field(default="pending", index=True)
    data: Optional[str] = None  # JSON
    created_at: datetime = Field(default_factory=datetime.now)
