# clinic/db/models/health/working_hours.py
from typing import Optional
from sqlmodel import SQLModel, Field, Relationship

class WorkingHours(SQLModel, table=True):
    __tablename__ = "working_hours"
    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    day_of_week: str = Field(max_length=10)  # monday .. sunday
    start_time: str  # HH:MM
    end_time: str
    lunch_start: str
    lunch_end: str

    # Relationships
    doctor: Optional["Doctor"] = Relationship(back_populates="working_hours")
