# clinic/db/models/health/time_slot.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class TimeSlot(SQLModel, table=True):
    __tablename__ = "time_slots"
    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    start_time: datetime = Field(index=True)
    end_time: datetime
    type: str = Field(default="unavailable")
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
