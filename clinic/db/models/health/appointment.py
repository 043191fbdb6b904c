# clinic/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    service_id: int = Field(foreign_key="services.id", index=True)
    start_time: datetime = Field(index=True)
    duration: int = Field(default=30)  # minutes
    status: str = Field(default="pending", index=True)
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    reminder_sent_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # Relationships
    patient: Optional["User"] = Relationship(back_populates="appointments")
    doctor: Optional["Doctor"] = Relationship(back_populates="appointments")
